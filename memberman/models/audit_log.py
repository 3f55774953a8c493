"""
AuditLog model - back-office trail of administrative changes.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class AuditLog(models.Model):
    """
    Record of an administrative action.

    Append-only. details holds before/after values relevant to the action.
    """

    action = models.CharField(_("action"), max_length=100, db_index=True)
    performed_by = models.CharField(_("performed by"), max_length=255)
    target_user_ref = models.CharField(_("target user"), max_length=255, blank=True, db_index=True)
    details = models.JSONField(_("details"), default=dict, blank=True)
    ip_address = models.CharField(_("IP address"), max_length=100, blank=True)
    user_agent = models.CharField(_("user agent"), max_length=500, blank=True)
    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)

    class Meta:
        db_table = "memberman_audit_log"
        verbose_name = _("audit log entry")
        verbose_name_plural = _("audit log")
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.action} by {self.performed_by}"
