from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Portal user: either the distributor's owner/admin or a member of a client"""
    ROLE_OWNER = 'owner'
    ROLE_CLIENT = 'client'
    ROLE_CHOICES = [
        (ROLE_OWNER, 'Owner'),
        (ROLE_CLIENT, 'Client'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CLIENT, db_index=True)
    client = models.ForeignKey('clients.Client', on_delete=models.SET_NULL, null=True, blank=True, related_name='users')
    phone = models.CharField(max_length=20, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_owner(self):
        return self.role == self.ROLE_OWNER

    class Meta:
        db_table = 'users'


class AuditLog(models.Model):
    """Audit log for order and assignment operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('order_submit', 'Order Submitted'),
        ('order_status_change', 'Order Status Changed'),
        ('order_items_update', 'Order Items Updated'),
        ('order_duplicate', 'Order Duplicated'),
        ('assignment_add', 'Product Assigned'),
        ('assignment_update', 'Assignment Price Changed'),
        ('assignment_remove', 'Product Unassigned'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order number, item number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='idx_audit_created'),
            models.Index(fields=['action'], name='idx_audit_action'),
            models.Index(fields=['object_reference'], name='idx_audit_reference'),
        ]
