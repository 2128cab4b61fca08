import logging

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response

from programmes.triggers import USER_CREATED, build_dispatcher, default_services
from utils.drf_auth import FirebaseAuthentication, IsFirebaseAuthenticated
from utils.errors import error_response

from .provisioning import AuthUser
from .serializers import UserProfileSerializer

_logger = logging.getLogger(__name__)


@api_view(['POST'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsFirebaseAuthenticated])
def register(request):
    """POST /api/auth/register/
    Provision users/{uid} for the signed-in Firebase user (same handler as the
    auth user-created event).
    """
    user = AuthUser.from_claims(request.user.claims)
    results = build_dispatcher().dispatch(USER_CREATED, user, default_services())
    profile = results[0] if results else {}
    return Response(UserProfileSerializer(profile).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@authentication_classes([FirebaseAuthentication])
@permission_classes([IsFirebaseAuthenticated])
def me(request):
    uid = request.user.uid
    profile = default_services().store.get(f'/users/{uid}')
    if not profile:
        return error_response('Profile not found', status_code=status.HTTP_404_NOT_FOUND, code='not_found')
    return Response(UserProfileSerializer(profile).data)
