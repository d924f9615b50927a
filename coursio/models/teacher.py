from flask_login import UserMixin
from ..extensions import db

class Teacher(UserMixin, db.Model):
    __tablename__ = "teachers"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    display_name = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    courses = db.relationship("Course", back_populates="owner")

    def to_dict(self):
        return {"id": self.id, "email": self.email, "displayName": self.display_name}
