import logging

from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.serializers import as_serializer_error
from rest_framework.views import exception_handler

from core.exceptions import AuthError, FormatError, StorageError

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (FormatError, status.HTTP_400_BAD_REQUEST),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def immunization_exception_handler(exc, context):
    """
    DRF's handler, taught the tracker's errors: business-rule failures become
    400s, bad credentials 401, storage failures 503 and unknown records 404.
    """
    for error_class, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            if error_class is StorageError:
                logger.error(f"Storage failure in {context['view'].__class__.__name__}: {exc.message}")
            return Response({'detail': exc.message}, status=status_code)

    if isinstance(exc, DjangoValidationError):
        exc = exceptions.ValidationError(detail=as_serializer_error(exc))
    elif isinstance(exc, ObjectDoesNotExist):
        exc = exceptions.NotFound()

    return exception_handler(exc, context)
