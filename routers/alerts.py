from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
import structlog

from models.base import AlertSeverity, AlertType
from services.alert_service import AlertService
from services.exceptions import AlertNotFound
from utils.dependencies import get_alert_service, rate_limit, verify_api_key

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/alerts",
    tags=["Alerts"]
)


@router.get("/active/{city}", summary="Active alerts for a city")
async def get_active_alerts(
    city: str,
    type: Optional[AlertType] = Query(None, description="Filter by alert type"),
    severity: Optional[AlertSeverity] = Query(None, description="Filter by severity"),
    alert_service: AlertService = Depends(get_alert_service),
):
    """Alerts that are flagged active and not yet past validUntil"""
    try:
        alerts = await alert_service.active_alerts(city, alert_type=type, severity=severity)
        return {"alerts": alerts}
    except Exception as e:
        logger.error("Failed to retrieve active alerts", city=city, error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to retrieve alerts")


@router.get("/history/{city}", summary="Alert history for a city")
async def get_alert_history(
    city: str,
    type: Optional[AlertType] = Query(None, description="Filter by alert type"),
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
    alert_service: AlertService = Depends(get_alert_service),
):
    try:
        return await alert_service.alert_history(city, alert_type=type, limit=limit, skip=skip)
    except Exception as e:
        logger.error("Failed to retrieve alert history", city=city, error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to retrieve alerts")


@router.get("/summary/{city}", summary="Active alert summary for the dashboard")
async def get_alert_summary(city: str, alert_service: AlertService = Depends(get_alert_service)):
    try:
        return await alert_service.alert_summary(city)
    except Exception as e:
        logger.error("Failed to build alert summary", city=city, error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to retrieve alert summary")


@router.get("/{alert_id}", summary="Get alert by id")
async def get_alert(alert_id: str, alert_service: AlertService = Depends(get_alert_service)):
    try:
        return {"alert": await alert_service.get_alert(alert_id)}
    except AlertNotFound:
        raise HTTPException(status_code=404, detail="Alert not found")


@router.delete("/{alert_id}", summary="Deactivate an alert (admin)")
async def deactivate_alert(
    alert_id: str,
    alert_service: AlertService = Depends(get_alert_service),
    _: bool = Depends(rate_limit),
    api_key: bool = Depends(verify_api_key),
):
    try:
        await alert_service.deactivate_alert(alert_id)
    except AlertNotFound:
        raise HTTPException(status_code=404, detail="Alert not found")
    return {"message": "Alert deactivated", "alert_id": alert_id}
