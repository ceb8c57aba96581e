from django.contrib.auth.models import User
from django.db import models


class DashboardState(models.Model):
    """
    Small per-user JSON values the dashboards remember between requests,
    e.g. which tutor notes a parent has seen or which sessions a tutor hid.
    """

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='dashboard_state')
    key = models.CharField(max_length=100)
    value = models.JSONField(default=dict, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "dashboard_state"
        unique_together = [["user", "key"]]

    def __str__(self):
        return f"{self.user_id}:{self.key}"
