from fastapi import APIRouter, Depends, status
from app.features.auth.schemas import LoginRequest, ForgotPasswordRequest
from app.features.auth.service import Account, AuthService
from app.features.auth.dependencies import get_current_account
from app.features.doctors.models import Doctor
from app.features.patients.schemas import RegisterPatientRequest
from app.shared.schemas import BaseResponse


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register/patient", response_model=BaseResponse, status_code=status.HTTP_201_CREATED)
async def register_patient(request: RegisterPatientRequest):
    """
    Register a new patient account.

    - **email**: Must not already be registered
    - **password**: At least 6 characters
    """
    patient, access_token = await AuthService.register_patient(request)

    return BaseResponse(data={
        "token": access_token,
        "token_type": "bearer",
        "user_type": "patient",
        "user": AuthService.account_to_response(patient),
    })


@router.post("/login", response_model=BaseResponse)
async def login(login_data: LoginRequest):
    """
    Authenticate a patient or doctor and return an access token.

    - **email**: Account email address
    - **password**: Account password
    - **user_type**: patient or doctor
    """
    account, access_token = await AuthService.login(login_data)

    return BaseResponse(data={
        "token": access_token,
        "token_type": "bearer",
        "user_type": login_data.user_type,
        "user": AuthService.account_to_response(account),
    })


@router.get("/me", response_model=BaseResponse)
async def get_me(current_account: Account = Depends(get_current_account)):
    """Get the authenticated account."""
    return BaseResponse(data={
        "user_type": "doctor" if isinstance(current_account, Doctor) else "patient",
        "user": AuthService.account_to_response(current_account),
    })


@router.post("/forgot-password", response_model=BaseResponse)
async def forgot_password(request: ForgotPasswordRequest):
    """Request a password reset for a known account."""
    await AuthService.forgot_password(request.email, request.user_type)
    return BaseResponse(data={"message": "Password reset instructions sent to your email"})
