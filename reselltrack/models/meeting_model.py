import enum
from datetime import datetime, time
from reselltrack import db


class MeetingType(enum.Enum):
    PICKUP = 'pickup'
    DROP_OFF = 'drop_off'
    VIEWING = 'viewing'
    NEGOTIATION = 'negotiation'
    OTHER = 'other'


class MeetingStatus(enum.Enum):
    SCHEDULED = 'scheduled'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    NO_SHOW = 'no_show'


class Meeting(db.Model):
    __tablename__ = 'meeting'
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=True)
    title = db.Column(db.String(100), nullable=False)
    client_name = db.Column(db.String(100), nullable=False)
    client_email = db.Column(db.String(120))
    client_phone = db.Column(db.String(20))
    scheduled_date = db.Column(db.Date, nullable=False)
    scheduled_time = db.Column(db.String(5), nullable=False)
    duration = db.Column(db.Integer)
    location = db.Column(db.String(200))
    meeting_type = db.Column(db.String(12), nullable=False, default=MeetingType.OTHER.value)
    status = db.Column(db.String(10), nullable=False, default=MeetingStatus.SCHEDULED.value)
    notes = db.Column(db.String(1000))
    reminder_sent = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = db.Column(db.DateTime, nullable=True)

    @property
    def scheduled_at(self):
        hours, minutes = (int(part) for part in self.scheduled_time.split(':'))
        return datetime.combine(self.scheduled_date, time(hours, minutes))

    def __repr__(self):
        return f'<Meeting {self.title} on {self.scheduled_date}>'
