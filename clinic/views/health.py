import logging

from django.db import DatabaseError, connections
from django.http import JsonResponse

logger = logging.getLogger('clinic')


def healthz(request):
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        return JsonResponse({'ok': True, 'db': bool(row and row[0] == 1)})
    except DatabaseError:
        logger.exception('health check failed')
        return JsonResponse({'ok': False, 'error': {'code': 'db_unavailable', 'message': 'Database unavailable.'}},
                            status=503)
