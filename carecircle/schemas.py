"""
Serialization and validation schemas using Marshmallow.

Input schemas validate the merged path, query and body parameters of a
request before a handler runs; they are the validation step attached to
each entry of the route table. Output schemas turn models and derived
values into JSON-friendly dictionaries. Sensitive fields, such as
password hashes, are never serialised.
"""

from __future__ import annotations

from datetime import date, datetime

from dateutil.parser import isoparse  # type: ignore
from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate, validates_schema
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema

from .models import NOTES_MAX_LENGTH, FlowIntensity, LogEntry, Mood, Symptom, User


class CalendarDate(fields.Field):
    """A calendar date that also accepts ISO 8601 datetimes.

    Browsers usually send ``Date`` objects as full timestamps, e.g.
    ``2024-01-29T00:00:00.000Z``; the time of day is dropped.
    """

    default_error_messages = {"invalid": "Not a valid date. Use ISO 8601 (YYYY-MM-DD)."}

    def _serialize(self, value, attr, obj, **kwargs):
        return value.isoformat() if value is not None else None

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            raise self.make_error("invalid")
        try:
            return isoparse(value.strip()).date()
        except ValueError as exc:
            raise self.make_error("invalid") from exc


class InputSchema(Schema):
    """Base for request schemas. Parameters a route does not declare are dropped."""

    class Meta:
        unknown = EXCLUDE


class CredentialsSchema(InputSchema):
    username = fields.String(required=True, validate=validate.Length(min=1, max=50))
    password = fields.String(required=True, validate=validate.Length(min=1))


class UsernameSchema(InputSchema):
    username = fields.String(required=True, validate=validate.Length(min=1, max=50))


class PasswordChangeSchema(InputSchema):
    current_password = fields.String(required=True, data_key="currentPassword")
    new_password = fields.String(
        required=True, data_key="newPassword", validate=validate.Length(min=1)
    )


class LogFieldsSchema(InputSchema):
    symptoms = fields.List(fields.Enum(Symptom, by_value=True), load_default=list)
    mood = fields.Enum(Mood, by_value=True, allow_none=True, load_default=None)
    flow = fields.Enum(FlowIntensity, by_value=True, allow_none=True, load_default=None)
    notes = fields.String(
        allow_none=True, load_default="", validate=validate.Length(max=NOTES_MAX_LENGTH)
    )


class LogCreateSchema(LogFieldsSchema):
    log_date = CalendarDate(required=True, data_key="date")


class LogUpdateSchema(LogFieldsSchema):
    """Update payload. ``date`` and ``owner`` are not accepted and are ignored if sent."""

    id = fields.Integer(required=True, strict=False)


class LogIdSchema(InputSchema):
    id = fields.Integer(required=True, strict=False)


class LogDateQuerySchema(InputSchema):
    log_date = CalendarDate(required=True, data_key="date")


class LogRangeQuerySchema(InputSchema):
    start = CalendarDate(load_default=None, data_key="from")
    end = CalendarDate(load_default=None, data_key="to")

    @validates_schema
    def check_order(self, data, **kwargs):
        if data.get("start") and data.get("end") and data["start"] > data["end"]:
            raise ValidationError("'from' must not be after 'to'.", field_name="from")


class UserSchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``User`` objects."""

    class Meta:
        model = User
        exclude = ("password_hash",)


class LogEntrySchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``LogEntry`` objects."""

    date = CalendarDate()
    symptoms = fields.List(fields.String())
    mood = fields.Enum(Mood, by_value=True, allow_none=True)
    flow = fields.Enum(FlowIntensity, by_value=True, allow_none=True)

    class Meta:
        model = LogEntry
        include_fk = True


class FriendRequestSchema(Schema):
    """A friend request with both ends shown as usernames."""

    from_ = fields.String(data_key="from")
    to = fields.String()
    status = fields.String()


class CycleStatsSchema(Schema):
    average_cycle_length_days = fields.Float()
    cycle_length_std_deviation = fields.Float()
    number_of_complete_cycles = fields.Integer()
    cycle_lengths = fields.List(fields.Integer())
    is_irregular = fields.Boolean()
    average_period_length_days = fields.Float(allow_none=True)
    last_cycle_start = CalendarDate(allow_none=True)
    predicted_next_start = CalendarDate(allow_none=True)
