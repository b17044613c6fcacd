# clients/serializers.py
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import Client
from .validators import normalize_rut


class ClientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Client
        fields = [
            "id", "rut", "name", "trade_name", "email", "phone", "address", "notes",
            "created_at", "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_rut(self, value):
        try:
            rut = normalize_rut(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)
        tenant = self.context.get("tenant")
        qs = Client.objects.filter(tenant=tenant, rut=rut)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if tenant is not None and qs.exists():
            raise serializers.ValidationError("A client with this RUT already exists.")
        return rut
