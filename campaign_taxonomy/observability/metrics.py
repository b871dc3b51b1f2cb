"""
Prometheus metrics collection for the Campaign Taxonomy Validator.

This module provides:
- Application metrics (requests, errors, response times)
- Validation metrics (mode, validity, duration, violations by rule)
- Quick fix and schema change counters
- Bulk validation fallback tracking
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    Info,
    generate_latest,
)

from ..core.config import settings


class MetricsCollector:
    """Central metrics collector for the application."""

    def __init__(self, registry: CollectorRegistry | None = None):
        """Initialize metrics collector."""
        self.registry = registry or CollectorRegistry()
        self._setup_metrics()

    def _setup_metrics(self):
        """Initialize all application metrics."""

        # Application info
        self.app_info = Info(
            'campaign_taxonomy_info',
            'Application information',
            registry=self.registry
        )
        self.app_info.info({
            'version': settings.app.version,
            'environment': settings.app.environment,
            'name': settings.app.app_name
        })

        # HTTP request metrics
        self.http_requests_total = Counter(
            'campaign_taxonomy_http_requests_total',
            'Total HTTP requests',
            ['method', 'endpoint', 'status_code'],
            registry=self.registry
        )

        self.http_request_duration = Histogram(
            'campaign_taxonomy_http_request_duration_seconds',
            'HTTP request duration in seconds',
            ['method', 'endpoint'],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
            registry=self.registry
        )

        # Validation metrics
        self.validations_total = Counter(
            'campaign_taxonomy_validations_total',
            'Total campaign name validations',
            ['mode', 'valid'],
            registry=self.registry
        )

        self.validation_duration = Histogram(
            'campaign_taxonomy_validation_duration_seconds',
            'Campaign name validation duration',
            ['mode'],
            buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1],
            registry=self.registry
        )

        self.validation_failures_total = Counter(
            'campaign_taxonomy_validation_failures_total',
            'Validations aborted by an engine error',
            ['error_type'],
            registry=self.registry
        )

        self.violations_total = Counter(
            'campaign_taxonomy_violations_total',
            'Rule violations found',
            ['rule_id'],
            registry=self.registry
        )

        # Quick fixes
        self.quick_fixes_total = Counter(
            'campaign_taxonomy_quick_fixes_total',
            'Quick fixes proposed',
            ['fix_id'],
            registry=self.registry
        )

        # Schema changes
        self.schema_saves_total = Counter(
            'campaign_taxonomy_schema_saves_total',
            'Platform schema saves',
            ['platform', 'status'],
            registry=self.registry
        )

        # Bulk validation
        self.bulk_items_total = Counter(
            'campaign_taxonomy_bulk_items_total',
            'Campaign names processed in bulk runs',
            ['outcome'],
            registry=self.registry
        )

    def track_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Track HTTP request metrics."""
        self.http_requests_total.labels(
            method=method, endpoint=endpoint, status_code=str(status_code)
        ).inc()

        self.http_request_duration.labels(
            method=method, endpoint=endpoint
        ).observe(duration)

    def track_validation(self, mode: str, is_valid: bool, duration: float, rule_ids: list[str]):
        """Track a completed validation."""
        self.validations_total.labels(mode=mode, valid=str(is_valid).lower()).inc()
        self.validation_duration.labels(mode=mode).observe(duration)
        for rule_id in rule_ids:
            self.violations_total.labels(rule_id=rule_id).inc()

    def track_validation_failure(self, error_type: str):
        """Track a validation aborted by an unexpected error."""
        self.validation_failures_total.labels(error_type=error_type).inc()

    def track_quick_fixes(self, fix_ids: list[str]):
        """Track proposed quick fixes."""
        for fix_id in fix_ids:
            self.quick_fixes_total.labels(fix_id=fix_id).inc()

    def track_schema_save(self, platform: str, success: bool):
        """Track a schema save attempt."""
        self.schema_saves_total.labels(
            platform=platform, status="success" if success else "rejected"
        ).inc()

    def track_bulk_item(self, outcome: str):
        """Track one bulk item: valid, invalid or fallback."""
        self.bulk_items_total.labels(outcome=outcome).inc()

    def get_metrics(self) -> bytes:
        """Get metrics in Prometheus format."""
        return generate_latest(self.registry)


# Global metrics collector
metrics = MetricsCollector()


def get_metrics_response():
    """Get metrics in format suitable for HTTP response."""
    return metrics.get_metrics(), {"Content-Type": CONTENT_TYPE_LATEST}

