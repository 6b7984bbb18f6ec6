from datetime import datetime

from jangji import db


class UserProgress(db.Model):
    __tablename__ = "user_progress"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    app_id = db.Column(db.String(64), nullable=False, default="jangji-app")
    last_surah = db.Column(db.Integer, nullable=False, default=1)
    last_ayah = db.Column(db.Integer, nullable=False, default=1)
    # epoch milliseconds, compared as-is against device timestamps
    last_read_at = db.Column(db.BigInteger, nullable=False)
    bookmarks = db.Column(db.JSON, nullable=False, default=list)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", back_populates="progress")
