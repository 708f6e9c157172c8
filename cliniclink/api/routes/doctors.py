from fastapi import APIRouter

from cliniclink.services.doctor_catalog import Doctor, list_doctors

router = APIRouter(prefix="/doctors", tags=["doctors"])


@router.get("", response_model=list[Doctor])
async def doctors() -> list[Doctor]:
    return list_doctors()
