"""
Domain exceptions for ClimateGuard services
"""


class ClimateGuardError(Exception):
    """Base class for service-level errors"""


class StoreUnavailableError(ClimateGuardError):
    """MongoDB could not be reached; every write would fail the same way"""


class IngestionAlreadyRunning(ClimateGuardError):
    """A pipeline run was requested while another one is still in progress"""


class AlertNotFound(ClimateGuardError):
    def __init__(self, alert_id: str):
        super().__init__(f"Alert not found: {alert_id}")
        self.alert_id = alert_id
