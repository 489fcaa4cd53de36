from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Метрики для HTTP запросов
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Метрики зачисления и назначения преподавателей
enrollment_operations_total = Counter(
    'enrollment_operations_total',
    'Enrollment and teacher-assignment operations',
    ['operation', 'outcome']
)

domain_errors_total = Counter(
    'domain_errors_total',
    'Domain failures returned to clients',
    ['code']
)

def metrics_endpoint():
    """Endpoint для Prometheus метрик"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
