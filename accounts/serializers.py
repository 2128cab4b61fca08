from rest_framework import serializers


class UserProfileSerializer(serializers.Serializer):
    """users/{uid} record as stored in the Realtime Database."""
    uid = serializers.CharField()
    email = serializers.CharField(allow_null=True, required=False)
    name = serializers.CharField()
