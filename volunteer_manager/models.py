from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .constants import EVENT_AVAILABILITY_UNAVAILABLE, REGISTRATION_REGISTERED
from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    # Bitmask of privileges, see access.privileges.Privilege
    privileges = Column(BigInteger, default=0, nullable=False)
    # Comma-separated permission grants and revokes, e.g. "event.visible,staff"
    permission_grants = Column(Text, nullable=True)
    permission_revokes = Column(Text, nullable=True)
    # Incremented to invalidate all outstanding sessions
    session_token = Column(Integer, default=0, nullable=False)
    activated = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    registrations = relationship("Registration", back_populates="user", cascade="all, delete-orphan")

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Environment(Base):
    __tablename__ = "environments"

    id = Column(Integer, primary_key=True, index=True)
    domain = Column(String(255), unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    color_dark_mode = Column(String(7), nullable=True)
    color_light_mode = Column(String(7), nullable=True)


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    badge = Column(String(50), nullable=True)
    # Volunteers holding an accepted registration with this role administer the event
    admin_access = Column(Boolean, default=False, nullable=False)
    availability_event_limit = Column(Integer, default=0, nullable=False)
    hotel_eligible = Column(Boolean, default=False, nullable=False)
    training_eligible = Column(Boolean, default=False, nullable=False)


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(100), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    environment = Column(String(255), nullable=False, index=True)
    default_role_id = Column(Integer, ForeignKey("roles.id"), nullable=True)

    default_role = relationship("Role")


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    short_name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, nullable=False)
    hidden = Column(Boolean, default=True, nullable=False)
    # Stored as naive UTC
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    timezone = Column(String(64), nullable=True)
    # Identifier of the festival in the program database, enables availability timeslots
    festival_id = Column(Integer, nullable=True)
    availability_status = Column(String(20), default=EVENT_AVAILABILITY_UNAVAILABLE, nullable=False)

    hotel_information_published = Column(Boolean, default=False, nullable=False)
    hotel_preferences_start = Column(DateTime, nullable=True)
    hotel_preferences_end = Column(DateTime, nullable=True)
    training_information_published = Column(Boolean, default=False, nullable=False)
    training_preferences_start = Column(DateTime, nullable=True)
    training_preferences_end = Column(DateTime, nullable=True)
    refund_information_published = Column(Boolean, default=False, nullable=False)
    refunds_start_time = Column(DateTime, nullable=True)
    refunds_end_time = Column(DateTime, nullable=True)

    teams = relationship("EventTeam", back_populates="event", cascade="all, delete-orphan")


class EventTeam(Base):
    __tablename__ = "events_teams"

    event_id = Column(Integer, ForeignKey("events.id"), primary_key=True)
    team_id = Column(Integer, ForeignKey("teams.id"), primary_key=True)
    enable_team = Column(Boolean, default=False, nullable=False)
    enable_content = Column(Boolean, default=False, nullable=False)
    enable_applications = Column(Boolean, default=False, nullable=False)
    enable_schedule = Column(Boolean, default=False, nullable=False)
    target_size = Column(Integer, nullable=True)
    whatsapp_link = Column(String(500), nullable=True)

    # Time windows, each nullable, see environment.determine_availability_status
    application_start = Column(DateTime, nullable=True)
    application_end = Column(DateTime, nullable=True)
    registration_start = Column(DateTime, nullable=True)
    registration_end = Column(DateTime, nullable=True)
    schedule_start = Column(DateTime, nullable=True)
    schedule_end = Column(DateTime, nullable=True)

    event = relationship("Event", back_populates="teams")
    team = relationship("Team")


class Registration(Base):
    """A volunteer's application to help out with a team during an event"""

    __tablename__ = "users_events"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id"), primary_key=True)
    team_id = Column(Integer, ForeignKey("teams.id"), primary_key=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    registration_date = Column(DateTime, server_default=func.now())
    registration_status = Column(String(20), default=REGISTRATION_REGISTERED, nullable=False)
    registration_notes = Column(Text, nullable=True)

    shirt_fit = Column(String(20), nullable=True)
    shirt_size = Column(String(10), nullable=True)
    include_credits = Column(Boolean, default=False, nullable=False)
    include_socials = Column(Boolean, default=False, nullable=False)
    fully_available = Column(Boolean, default=False, nullable=False)

    preferences = Column(Text, nullable=True)
    preferences_dietary = Column(Text, nullable=True)
    preferences_updated = Column(DateTime, nullable=True)
    preference_hours = Column(Integer, nullable=True)
    preference_timing_start = Column(Integer, nullable=True)
    preference_timing_end = Column(Integer, nullable=True)

    # JSON list of {start, end, state} periods set by the volunteering leads
    availability_exceptions = Column(Text, nullable=True)
    # Comma-separated program timeslot ids the volunteer wants to attend
    availability_timeslots = Column(Text, nullable=True)
    # Overrides of the role defaults, NULL means "use the role's setting"
    availability_event_limit = Column(Integer, nullable=True)
    hotel_eligible = Column(Integer, nullable=True)
    training_eligible = Column(Integer, nullable=True)

    user = relationship("User", back_populates="registrations")
    event = relationship("Event")
    team = relationship("Team")
    role = relationship("Role")


class ProgramActivity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    festival_id = Column(Integer, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    deleted = Column(DateTime, nullable=True)

    timeslots = relationship("ProgramTimeslot", back_populates="activity")


class ProgramTimeslot(Base):
    __tablename__ = "activities_timeslots"

    id = Column(Integer, primary_key=True, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id"), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    deleted = Column(DateTime, nullable=True)

    activity = relationship("ProgramActivity", back_populates="timeslots")


class Hotel(Base):
    __tablename__ = "hotels"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    hotel_name = Column(String(255), nullable=False)
    hotel_description = Column(Text, nullable=True)
    room_name = Column(String(255), nullable=False)
    room_people = Column(Integer, default=1, nullable=False)
    room_price = Column(Integer, default=0, nullable=False)  # in cents
    visible = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class HotelPreference(Base):
    __tablename__ = "hotels_preferences"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id"), primary_key=True)
    team_id = Column(Integer, ForeignKey("teams.id"), primary_key=True)
    hotel_id = Column(Integer, ForeignKey("hotels.id"), nullable=True)
    hotel_date_check_in = Column(Date, nullable=True)
    hotel_date_check_out = Column(Date, nullable=True)
    hotel_sharing_people = Column(Integer, nullable=True)
    hotel_sharing_preferences = Column(Text, nullable=True)
    hotel_preferences_updated = Column(DateTime, nullable=True)


class Training(Base):
    __tablename__ = "trainings"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    training_address = Column(Text, nullable=True)
    training_start = Column(DateTime, nullable=False)
    training_end = Column(DateTime, nullable=False)
    training_capacity = Column(Integer, default=0, nullable=False)
    training_visible = Column(Boolean, default=True, nullable=False)


class TrainingExtra(Base):
    """A participant of the training who does not have a volunteer account"""

    __tablename__ = "trainings_extra"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    birthdate = Column(Date, nullable=True)
    visible = Column(Boolean, default=True, nullable=False)


class TrainingAssignment(Base):
    __tablename__ = "trainings_assignments"
    __table_args__ = (UniqueConstraint("event_id", "user_id", "extra_id"),)

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    extra_id = Column(Integer, ForeignKey("trainings_extra.id"), nullable=True)
    preference_training_id = Column(Integer, ForeignKey("trainings.id"), nullable=True)
    preference_updated = Column(DateTime, nullable=True)
    assignment_training_id = Column(Integer, ForeignKey("trainings.id"), nullable=True)
    assignment_updated = Column(DateTime, nullable=True)
    assignment_confirmed = Column(Boolean, default=False, nullable=False)


class Refund(Base):
    __tablename__ = "refunds"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id"), primary_key=True)
    refund_ticket_number = Column(String(255), nullable=True)
    refund_account_iban = Column(String(64), nullable=False)
    refund_account_name = Column(String(255), nullable=False)
    refund_requested = Column(DateTime, nullable=False)
    refund_confirmed = Column(DateTime, nullable=True)

    user = relationship("User")


class Content(Base):
    __tablename__ = "content"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    path = Column(String(255), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False, default="")
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class LogEntry(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    log_date = Column(DateTime, server_default=func.now(), index=True)
    log_type = Column(String(100), nullable=False, index=True)
    log_severity = Column(String(20), nullable=False)
    log_source_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    log_target_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    log_data = Column(Text, nullable=True)
    log_deleted = Column(DateTime, nullable=True)
