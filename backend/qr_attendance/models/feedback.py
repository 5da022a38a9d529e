"""User feedback submitted from the settings page."""
from qr_attendance import db
from qr_attendance.models.base import BaseModel
from qr_attendance.utils.helpers import isoformat


class Feedback(BaseModel):

    __tablename__ = 'feedback'

    category = db.Column(db.String(100), nullable=False)
    message = db.Column(db.Text, nullable=False)
    email = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'category': self.category,
            'message': self.message,
            'email': self.email,
            'createdAt': isoformat(self.created_at)
        }
