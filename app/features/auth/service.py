from datetime import datetime
from typing import Optional, Union
from beanie import PydanticObjectId
from app.features.doctors.models import Doctor
from app.features.doctors.service import DoctorService
from app.features.patients.models import Patient
from app.features.patients.schemas import RegisterPatientRequest
from app.features.patients.service import PatientService
from app.features.auth.schemas import LoginRequest
from app.core.security import verify_password, create_access_token
from app.shared.exceptions import CredentialsException, NotFoundException
from app.core.logging import logger


Account = Union[Patient, Doctor]

ACCOUNT_MODELS = {
    "patient": Patient,
    "doctor": Doctor,
}


class AuthService:
    """Authentication service for patients and doctors."""

    @staticmethod
    def issue_token(account: Account, user_type: str) -> str:
        return create_access_token(str(account.id), user_type)

    @staticmethod
    def account_to_response(account: Account) -> dict:
        if isinstance(account, Doctor):
            return DoctorService.doctor_to_response(account)
        return PatientService.patient_to_response(account)

    @staticmethod
    async def register_patient(request: RegisterPatientRequest) -> tuple[Patient, str]:
        """
        Register a new patient account.

        Returns:
            tuple: (patient, access_token)
        """
        patient = await PatientService.create_patient(request)
        return patient, AuthService.issue_token(patient, "patient")

    @staticmethod
    async def login(login_data: LoginRequest) -> tuple[Account, str]:
        """
        Authenticate a patient or doctor and return an access token.

        Returns:
            tuple: (account, access_token)
        """
        model = ACCOUNT_MODELS[login_data.user_type]
        account = await model.find_one(model.email == login_data.email)
        if not account:
            raise CredentialsException("Invalid email or password")

        # Seeded accounts may have no password set yet
        if not account.password_hash or not verify_password(login_data.password, account.password_hash):
            raise CredentialsException("Invalid email or password")

        if not account.is_active:
            raise CredentialsException("Account is inactive")

        account.last_login_date = datetime.utcnow()
        await account.save()

        logger.info(f"{login_data.user_type.capitalize()} {account.id} logged in")
        return account, AuthService.issue_token(account, login_data.user_type)

    @staticmethod
    async def get_account(user_type: str, account_id: str) -> Optional[Account]:
        """Get an account by type and ID."""
        model = ACCOUNT_MODELS.get(user_type)
        if model is None or not PydanticObjectId.is_valid(account_id):
            return None
        return await model.get(PydanticObjectId(account_id))

    @staticmethod
    async def forgot_password(email: str, user_type: str = "patient") -> None:
        """
        Accept a password reset request for a known account.

        No reset mail is sent; the request is only logged.
        """
        model = ACCOUNT_MODELS[user_type]
        account = await model.find_one(model.email == email)
        if not account:
            raise NotFoundException("No account found with this email")

        logger.info(f"Password reset requested for {user_type} {account.id}")
