from fastapi import APIRouter, Depends, File, Form, UploadFile
from raqm.database.supabase_client import get_supabase
from raqm.modules.verification.schemas import VerificationStatus
from raqm.modules.verification.service import VerificationService
from raqm.core.dependencies import get_current_profile
from supabase import Client
from typing import Optional, Dict

router = APIRouter(prefix="/verification", tags=["verification"])


def get_verification_service(supabase: Client = Depends(get_supabase)) -> VerificationService:
    return VerificationService(supabase)


@router.get("/mulkiya", response_model=VerificationStatus)
async def get_status(
    profile: Dict = Depends(get_current_profile),
    service: VerificationService = Depends(get_verification_service)
):
    return service.status(profile)


@router.post("/mulkiya", response_model=VerificationStatus)
async def verify_mulkiya(
    image: Optional[UploadFile] = File(None),
    plate_number: Optional[str] = Form(None),
    profile: Dict = Depends(get_current_profile),
    service: VerificationService = Depends(get_verification_service)
):
    """Upload a photo of the Mulkiya ID to unlock the rest of the app"""
    return await service.verify(profile, image, plate_number)
