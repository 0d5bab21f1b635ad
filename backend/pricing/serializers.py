from __future__ import annotations

from rest_framework import serializers


class LineTextField(serializers.Field):
    """Free text on a service line; never rejects, the pricer judges the value."""

    def __init__(self, **kwargs):
        kwargs.setdefault("required", False)
        kwargs.setdefault("allow_null", True)
        kwargs.setdefault("default", "")
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if data is None:
            return ""
        return str(data).strip()

    def to_representation(self, value):
        return value


class ServiceLineSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=64)
    # `service` is the historical field name; `service_key` is accepted too.
    service = LineTextField()
    service_key = LineTextField()
    unit = LineTextField()
    # Raw on purpose: a bad quantity fails its own line, not the batch.
    quantity = serializers.JSONField(required=False, allow_null=True, default=None)
    currency = LineTextField()

    def validate(self, attrs):
        attrs["service_key"] = attrs.get("service_key") or attrs.get("service") or ""
        attrs.pop("service", None)
        return attrs


class PriceServiceLinesRequestSerializer(serializers.Serializer):
    case_id = serializers.IntegerField(min_value=1)
    service_lines = ServiceLineSerializer(many=True, allow_empty=False)


class PricedLineSerializer(serializers.Serializer):
    id = serializers.CharField()
    rate = serializers.DecimalField(max_digits=14, decimal_places=2, allow_null=True)
    currency = serializers.CharField()
    source = serializers.CharField()
    confidence = serializers.FloatField()
    explanation = serializers.CharField()
    quantity_used = serializers.DecimalField(max_digits=14, decimal_places=3, allow_null=True)
    unit_used = serializers.CharField(allow_null=True)
    rule_id = serializers.IntegerField(allow_null=True)
    conversion_used = serializers.CharField(allow_null=True)


class PricingSummarySerializer(serializers.Serializer):
    priced = serializers.IntegerField()
    missing = serializers.IntegerField()
    total = serializers.IntegerField()


class PricingResultSerializer(serializers.Serializer):
    priced_lines = PricedLineSerializer(many=True)
    missing = serializers.ListField(child=serializers.CharField())
    summary = PricingSummarySerializer()
