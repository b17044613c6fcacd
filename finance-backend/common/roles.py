from django.db import models

class TenantRole(models.TextChoices):
    OWNER      = "owner",      "Owner"
    ADMIN      = "admin",      "Admin"
    MANAGER    = "manager",    "Manager"
    ACCOUNTANT = "accountant", "Accountant"
    SUPERVISOR = "supervisor", "Supervisor"
    WORKER     = "worker",     "Worker"
