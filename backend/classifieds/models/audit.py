from __future__ import annotations

from ..extensions import db
from classifieds.time_utils import to_utc_z


class AuditLog(db.Model):
    """
    Trace of every state-changing workflow action.

    IMMUTABLE: Never update or delete. Append-only.
    Rows are written after the triggering action has committed, so a failed
    audit write never undoes the action itself.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_target", "target_type", "target_id"),
        db.Index("ix_audit_logs_action_created", "action", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    action = db.Column(db.String(64), nullable=False)  # ad_created, payment_approved, ...
    actor_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)  # None for system jobs

    target_id = db.Column(db.Integer, nullable=True)
    target_type = db.Column(db.String(32), nullable=True)  # ad, payment, category, user

    details = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    actor = db.relationship("User", backref=db.backref("audit_logs", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "actor_id": self.actor_id,
            "actor_name": self.actor.name if self.actor else None,
            "target_id": self.target_id,
            "target_type": self.target_type,
            "details": dict(self.details or {}),
            "created_at": to_utc_z(self.created_at),
        }
