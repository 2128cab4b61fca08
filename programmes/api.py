import hmac
import logging

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, parser_classes, permission_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from utils.errors import error_response, field_error

from .ingest import process_csv
from .search import iter_programmes, subject_key
from .serializers import SearchQuerySerializer, StorageEventSerializer
from .triggers import STORAGE_OBJECT_CHANGE, StorageObject, build_dispatcher, default_services

_logger = logging.getLogger(__name__)


def _events_token_ok(request) -> bool:
    expected = getattr(settings, 'STORAGE_EVENTS_TOKEN', '') or ''
    if not expected:
        return True
    auth_header = request.META.get('HTTP_AUTHORIZATION', '')
    parts = auth_header.split(' ', 1)
    if len(parts) != 2 or parts[0].strip().lower() != 'bearer':
        return False
    return hmac.compare_digest(parts[1].strip(), expected)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([])
@parser_classes([MultiPartParser, FormParser])
def upload_csv(request):
    """POST /upload_csv (multipart/form-data, file field `csv`)
    Replaces Programmes and RowErrors with the contents of the file. Empty 200 on success.
    """
    fobj = request.FILES.get('csv')
    if fobj is None:
        return field_error('csv', 'This field is required.', detail='No CSV file provided')
    try:
        csv_text = fobj.read().decode('utf-8')
    except UnicodeDecodeError:
        return field_error('csv', 'File is not valid UTF-8 text.', detail='CSV file must be UTF-8 encoded')

    services = default_services()
    result = process_csv(csv_text, services.store)
    _logger.info('upload_csv: %s -> %d programmes, %d row errors', fobj.name, len(result.programmes), len(result.errors))
    return Response(status=status.HTTP_200_OK)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([])
@parser_classes([JSONParser])
def storage_event(request):
    """POST /api/events/storage
    Body: Cloud Storage object metadata ({"bucket", "name", "contentType", "resourceState"}).
    """
    if not _events_token_ok(request):
        return error_response('Invalid events token', status_code=status.HTTP_401_UNAUTHORIZED, code='unauthorized')

    ser = StorageEventSerializer(data=request.data)
    ser.is_valid(raise_exception=True)
    obj = StorageObject.from_notification(ser.validated_data)

    services = default_services()
    results = build_dispatcher().dispatch(STORAGE_OBJECT_CHANGE, obj, services)
    ingested = [r for r in results if r is not None]
    if not ingested:
        return Response({'status': 'ignored', 'name': obj.name})
    summary = ingested[0].summary()
    return Response({'status': 'ingested', 'name': obj.name, **summary})


@api_view(['GET'])
@authentication_classes([])
@permission_classes([])
def ingest_status(request):
    """GET /api/programmes/status
    Last ingestion time, number of stored programmes and the rejected rows.
    """
    store = default_services().store
    row_errors = store.get('/RowErrors') or []
    if isinstance(row_errors, dict):
        row_errors = list(row_errors.values())
    return Response({
        'updateTime': store.get('/updateTime'),
        'programmes': len(iter_programmes(store.get('/Programmes'))),
        'rowErrors': row_errors,
    })


@api_view(['GET'])
@authentication_classes([])
@permission_classes([])
def search(request):
    """GET /api/search?type=CSEC&subject=Mathematics
    Programmes listing the subject among their requirements of that type.
    """
    ser = SearchQuerySerializer(data=request.GET)
    ser.is_valid(raise_exception=True)
    key = subject_key(ser.validated_data['type'], ser.validated_data['subject'])

    bucket = default_services().store.get(f'/search/{key}') or {}
    results = [bucket[k] for k in sorted(bucket)]
    return Response({'key': key, 'count': len(results), 'results': results})
