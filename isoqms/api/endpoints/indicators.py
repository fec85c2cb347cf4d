"""
Indicator Endpoints

KPIs and their measurements. A measurement is flagged within_limits when
the value sits inside the indicator's control limits at the time it is
recorded; indicators without limits leave the flag unset.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from typing import List, Optional

from isoqms.models.project import Project
from isoqms.models.indicator import Indicator, IndicatorMeasurement, IndicatorFrequency
from isoqms.schemas.indicator import (
    IndicatorCreate,
    IndicatorUpdate,
    IndicatorResponse,
    IndicatorDetail,
    MeasurementCreate,
    MeasurementResponse,
)
from isoqms.api.deps import get_request_context, ensure_member_ref, Pagination
from isoqms.api.responses import DataResponse, PageResponse, Deleted, paginate, deleted
from isoqms.core.exceptions import ValidationError
from isoqms.core.permissions import require_permission
from isoqms.core.tenancy import RequestContext
from isoqms.services.activity import log_activity, get_client_ip

router = APIRouter(prefix="/tenants/{tenant_slug}/indicators", tags=["indicators"])


def within_limits(value: float, lower: Optional[float], upper: Optional[float]) -> Optional[bool]:
    if lower is None and upper is None:
        return None
    if lower is not None and value < lower:
        return False
    if upper is not None and value > upper:
        return False
    return True


@router.get("", response_model=PageResponse[IndicatorResponse])
def list_indicators(
    project_id: Optional[str] = Query(None, alias="projectId"),
    frequency: Optional[IndicatorFrequency] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    pagination: Pagination = Depends(),
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "indicator", "read")

    query = ctx.db.query(Indicator)
    if project_id:
        query = query.filter(Indicator.project_id == project_id)
    if frequency:
        query = query.filter(Indicator.frequency == frequency.value)
    if is_active is not None:
        query = query.filter(Indicator.is_active == is_active)

    return paginate(query.order_by(Indicator.name), pagination)


@router.get("/{indicator_id}", response_model=DataResponse[IndicatorDetail])
def get_indicator(
    indicator_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "indicator", "read")
    return {"data": ctx.db.get_or_404(Indicator, indicator_id, "Indicator")}


@router.post("", response_model=DataResponse[IndicatorResponse], status_code=status.HTTP_201_CREATED)
def create_indicator(
    indicator_data: IndicatorCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "indicator", "create")
    ctx.db.get_or_404(Project, indicator_data.project_id, "Project")
    ensure_member_ref(ctx, indicator_data.responsible_id)

    indicator = ctx.db.add(Indicator(**indicator_data.model_dump()))
    ctx.db.flush()
    log_activity(ctx.db, ctx, "create", "indicator", indicator.id, {"name": indicator.name}, get_client_ip(request))
    ctx.db.commit()
    ctx.db.refresh(indicator)
    return {"data": indicator}


@router.patch("/{indicator_id}", response_model=DataResponse[IndicatorResponse])
def update_indicator(
    indicator_id: str,
    indicator_data: IndicatorUpdate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "indicator", "update")
    indicator = ctx.db.get_or_404(Indicator, indicator_id, "Indicator")

    update_data = indicator_data.model_dump(exclude_unset=True)
    if "responsible_id" in update_data:
        ensure_member_ref(ctx, update_data["responsible_id"])

    lower = update_data.get("lower_limit", indicator.lower_limit)
    upper = update_data.get("upper_limit", indicator.upper_limit)
    if lower is not None and upper is not None and lower > upper:
        raise ValidationError("lower_limit must not exceed upper_limit", {"lower_limit": ["greater than upper_limit"]})

    for field, value in update_data.items():
        setattr(indicator, field, value)

    log_activity(
        ctx.db, ctx, "update", "indicator", indicator.id,
        {"fields": sorted(update_data)}, get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(indicator)
    return {"data": indicator}


@router.delete("/{indicator_id}", response_model=DataResponse[Deleted])
def delete_indicator(
    indicator_id: str,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "indicator", "delete")
    indicator = ctx.db.get_or_404(Indicator, indicator_id, "Indicator")

    ctx.db.delete(indicator)
    log_activity(ctx.db, ctx, "delete", "indicator", indicator_id, {"name": indicator.name}, get_client_ip(request))
    ctx.db.commit()
    return deleted()


@router.get("/{indicator_id}/measurements", response_model=DataResponse[List[MeasurementResponse]])
def list_measurements(
    indicator_id: str,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "indicator", "read")
    ctx.db.get_or_404(Indicator, indicator_id, "Indicator")

    measurements = ctx.db.query(
        IndicatorMeasurement, IndicatorMeasurement.indicator_id == indicator_id
    ).order_by(IndicatorMeasurement.period.desc()).all()
    return {"data": measurements}


@router.post(
    "/{indicator_id}/measurements",
    response_model=DataResponse[MeasurementResponse],
    status_code=status.HTTP_201_CREATED
)
def add_measurement(
    indicator_id: str,
    measurement_data: MeasurementCreate,
    request: Request,
    ctx: RequestContext = Depends(get_request_context)
):
    require_permission(ctx, "indicator", "create")
    indicator = ctx.db.get_or_404(Indicator, indicator_id, "Indicator")
    if not indicator.is_active:
        raise ValidationError("Indicator is inactive", {"indicator_id": ["inactive"]})

    measurement = ctx.db.add(IndicatorMeasurement(
        indicator_id=indicator.id,
        value=measurement_data.value,
        period=measurement_data.period,
        notes=measurement_data.notes,
        within_limits=within_limits(measurement_data.value, indicator.lower_limit, indicator.upper_limit),
        created_by_id=ctx.user_id,
    ))
    ctx.db.flush()
    log_activity(
        ctx.db, ctx, "create", "indicatorMeasurement", measurement.id,
        {"indicator_id": indicator.id, "period": measurement.period}, get_client_ip(request)
    )
    ctx.db.commit()
    ctx.db.refresh(measurement)
    return {"data": measurement}
