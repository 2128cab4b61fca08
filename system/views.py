from django.conf import settings
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response

from accounts.auth import firebase_init_error


@api_view(['GET'])
@authentication_classes([])
@permission_classes([])
def health(_request):
    out = {"status": "ok", "store": getattr(settings, 'PROGRAMMES_STORE', 'firebase')}
    err = firebase_init_error()
    if err:
        out["firebase_error"] = err
    return Response(out)
