from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wa_automation.domain.exceptions import ResourceNotFoundException, ValidationException
from wa_automation.infrastructure.persistence.models.tenant import Tenant
from wa_automation.infrastructure.persistence.repositories.tenant_repo import TenantRepository
from wa_automation.presentation.api.dependencies import get_db, get_db_transactional
from wa_automation.presentation.api.v1.schemas.tenant import TenantCreate, TenantResponse

router = APIRouter()


@router.post("/", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    data: TenantCreate,
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
):
    """
    Register a tenant (one WhatsApp business).

    The returned id is what callers send in the tenant header.
    """
    repo = TenantRepository(db)
    if await repo.get_by_code(data.code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Tenant with code '{data.code}' already exists",
        )
    try:
        tenant = await repo.create(Tenant(code=data.code, name=data.name))
    except IntegrityError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Tenant with code '{data.code}' already exists",
        ) from e
    return TenantResponse.model_validate(tenant)


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(tenant_id: str, db: Annotated[AsyncSession, Depends(get_db)]):
    """Get a tenant by ID"""
    tenant = await TenantRepository(db).get_by_id(tenant_id)
    if not tenant:
        raise ResourceNotFoundException("Tenant", tenant_id)
    return TenantResponse.model_validate(tenant)


@router.post("/{tenant_id}/suspend", response_model=TenantResponse)
async def suspend_tenant(
    tenant_id: str, db: Annotated[AsyncSession, Depends(get_db_transactional)]
):
    """Suspend a tenant; suspended tenants can no longer use the automation API"""
    repo = TenantRepository(db)
    tenant = await repo.get_by_id(tenant_id)
    if not tenant:
        raise ResourceNotFoundException("Tenant", tenant_id)

    entity = tenant.to_entity()
    try:
        entity.suspend()
    except ValueError as e:
        raise ValidationException(str(e), field="status") from e

    tenant.status = entity.status.value
    tenant = await repo.update(tenant)
    return TenantResponse.model_validate(tenant)
