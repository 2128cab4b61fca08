from rest_framework import serializers

from .schema import QUALIFICATION_TYPES


class StorageEventSerializer(serializers.Serializer):
    """Cloud Storage object-change notification (object metadata, camelCase keys)."""
    bucket = serializers.CharField(allow_blank=True, required=False, default='')
    name = serializers.CharField()
    contentType = serializers.CharField(allow_blank=True, required=False, allow_null=True, default=None)
    resourceState = serializers.CharField(allow_blank=True, required=False, allow_null=True, default=None)
    eventType = serializers.CharField(allow_blank=True, required=False, allow_null=True, default=None)


class SearchQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=QUALIFICATION_TYPES)
    subject = serializers.CharField(trim_whitespace=True)

    def to_internal_value(self, data):
        data = data.copy() if hasattr(data, 'copy') else dict(data)
        raw_type = data.get('type')
        if isinstance(raw_type, str):
            data['type'] = raw_type.strip().upper()
        return super().to_internal_value(data)

    def validate_subject(self, value: str) -> str:
        if any(ch in value for ch in '/.$#[]'):
            raise serializers.ValidationError("Subject may not contain '/', '.', '$', '#', '[' or ']'.")
        return value
