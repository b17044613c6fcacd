from rest_framework import serializers
from .models import CostCenter, Project


def _same_tenant(serializer, obj, label):
    tenant = serializer.context.get("tenant")
    if obj is not None and tenant is not None and obj.tenant_id != tenant.id:
        raise serializers.ValidationError(f"{label} does not belong to this company.")
    return obj


class ProjectSerializer(serializers.ModelSerializer):
    class Meta:
        model = Project
        fields = [
            "id", "name", "description", "status", "client", "budget", "address",
            "progress", "start_date", "end_date", "created_at", "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_client(self, value):
        return _same_tenant(self, value, "Client")

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "End date is before start date."})
        return attrs


class CostCenterSerializer(serializers.ModelSerializer):
    class Meta:
        model = CostCenter
        fields = ["id", "code", "name", "budget", "projects", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]

    def validate_projects(self, value):
        for p in value:
            _same_tenant(self, p, "Project")
        return value
