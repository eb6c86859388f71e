# novayra/activity_log_service.py
import logging
from flask import g, has_request_context, request

from .models import db, AdminActivityLog


class ActivityLogService:
    """
    Append-only trail of admin mutations.

    Entries are written after the primary change has committed, in their own
    commit. A failed write is rolled back and logged; it never fails the
    request that triggered it.
    """

    def __init__(self, app=None):
        self.app = app
        if app is not None:
            self.logger = app.logger
        else:
            self.logger = logging.getLogger(__name__)

    def log_action(self, action, admin_id=None, table_name=None, record_id=None,
                   details=None, ip_address=None, user_agent=None):
        try:
            if has_request_context():
                ip_address = ip_address or request.remote_addr
                user_agent = user_agent or request.headers.get('User-Agent')

            log_entry = AdminActivityLog(
                admin_id=admin_id,
                action=action,
                table_name=table_name,
                record_id=int(record_id) if record_id is not None else None,
                details=details,
                ip_address=ip_address,
                user_agent=user_agent
            )
            db.session.add(log_entry)
            db.session.commit()
            return True
        except Exception as e:
            db.session.rollback()
            self.logger.error(f"Failed to write admin activity log: Action={action}, AdminID={admin_id}, "
                              f"Target={table_name}/{record_id}. Error: {e}", exc_info=True)
            return False

    def log_admin_action(self, action, table_name=None, record_id=None, details=None):
        """Records an action for the admin authenticated on the current request."""
        admin = getattr(g, 'current_admin', None)
        return self.log_action(
            action,
            admin_id=admin.id if admin else None,
            table_name=table_name,
            record_id=record_id,
            details=details
        )
