from fastapi import APIRouter
from .patient.patient_routes import router as patient_router
from .patient.medical_history_routes import router as medical_history_router
from .patient.lifestyle_routes import router as lifestyle_router

router = APIRouter()


router.include_router(patient_router)
router.include_router(medical_history_router)
router.include_router(lifestyle_router)
