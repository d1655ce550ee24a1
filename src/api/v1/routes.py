"""
API v1 auth routes.

Defines REST endpoints for the token workflows: ghost registration,
sessions, password reset and email verification. Domain errors are
translated to HTTP responses by src.api.errors.
"""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import (
    get_email_verification_workflow,
    get_password_reset_workflow,
    get_registration_workflow,
    get_session_workflow,
)
from src.api.models import (
    EmailVerifyFinishRequest,
    EmailVerifyStartRequest,
    ErrorResponse,
    ForgotPasswordRequest,
    ForgotPasswordVerifyRequest,
    LoginRequest,
    LogoutRequest,
    Metadata,
    RefreshTokenRequest,
    RegisterGhostRequest,
    RegisterGhostResponse,
    RegisterRequest,
    ResetPasswordRequest,
    SessionResponse,
    StatusResponse,
    VerificationTokenResponse,
)
from src.domain.email_verification import EmailVerificationWorkflow
from src.domain.password_reset import PasswordResetWorkflow
from src.domain.registration import RegistrationWorkflow
from src.domain.sessions import SessionWorkflow

router = APIRouter(prefix="/auth", tags=["auth"])

UNAUTHENTICATED = {401: {"model": ErrorResponse, "description": "Invalid token, code or credentials"}}


@router.post(
    "/register-ghost",
    response_model=RegisterGhostResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email and/or username already in use"},
        422: {"description": "Validation error"},
    },
    summary="Start a registration",
    description="Submit username, email and password. A 6-digit verification code "
    "is sent to the email; the returned register token carries the pending data.",
)
def register_ghost(
    request_data: RegisterGhostRequest,
    workflow: RegistrationWorkflow = Depends(get_registration_workflow),
) -> RegisterGhostResponse:
    started = workflow.start(request_data.username, request_data.email, request_data.password)
    return RegisterGhostResponse(
        metadata=Metadata(message="Register ghost successful"),
        register_token=started.register_token,
        expires_in_seconds=started.expires_in_seconds,
    )


@router.post(
    "/register",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **UNAUTHENTICATED,
        409: {"model": ErrorResponse, "description": "User already exists"},
    },
    summary="Finish a registration",
    description="Submit the register token and the emailed code to create the account.",
)
def register(
    request_data: RegisterRequest,
    workflow: RegistrationWorkflow = Depends(get_registration_workflow),
) -> SessionResponse:
    session = workflow.finish(request_data.register_token, request_data.verification_code)
    return SessionResponse(
        metadata=Metadata(message="Register successful"),
        access_token=session.access_token,
        refresh_token=session.refresh_token,
    )


@router.post(
    "/login",
    response_model=SessionResponse,
    responses=UNAUTHENTICATED,
    summary="Log in with email or username",
)
def login(
    request_data: LoginRequest,
    workflow: SessionWorkflow = Depends(get_session_workflow),
) -> SessionResponse:
    session = workflow.login(request_data.email_or_username, request_data.password)
    return SessionResponse(
        metadata=Metadata(message="Login successful"),
        access_token=session.access_token,
        refresh_token=session.refresh_token,
    )


@router.post(
    "/refresh-token",
    response_model=SessionResponse,
    responses=UNAUTHENTICATED,
    summary="Exchange a refresh token for a new session",
)
def refresh_token(
    request_data: RefreshTokenRequest,
    workflow: SessionWorkflow = Depends(get_session_workflow),
) -> SessionResponse:
    session = workflow.refresh(request_data.refresh_token)
    return SessionResponse(
        metadata=Metadata(message="Refresh token successful"),
        access_token=session.access_token,
        refresh_token=session.refresh_token,
    )


@router.post(
    "/logout",
    response_model=StatusResponse,
    responses=UNAUTHENTICATED,
    summary="Log out",
    description="Advisory only: the access token stays valid until it expires.",
)
def logout(
    request_data: LogoutRequest,
    workflow: SessionWorkflow = Depends(get_session_workflow),
) -> StatusResponse:
    workflow.logout(request_data.access_token)
    return StatusResponse(metadata=Metadata(message="Logout successful"))


@router.post(
    "/forgot-password",
    response_model=VerificationTokenResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Request a password reset code",
)
def forgot_password(
    request_data: ForgotPasswordRequest,
    workflow: PasswordResetWorkflow = Depends(get_password_reset_workflow),
) -> VerificationTokenResponse:
    token = workflow.request(request_data.email_or_username)
    return VerificationTokenResponse(
        metadata=Metadata(message="Password reset code sent"),
        verification_token=token,
    )


@router.post(
    "/forgot-password/verify",
    response_model=VerificationTokenResponse,
    responses=UNAUTHENTICATED,
    summary="Verify a password reset code",
)
def forgot_password_verify(
    request_data: ForgotPasswordVerifyRequest,
    workflow: PasswordResetWorkflow = Depends(get_password_reset_workflow),
) -> VerificationTokenResponse:
    token = workflow.verify(request_data.verification_token, request_data.code)
    return VerificationTokenResponse(
        metadata=Metadata(message="Password reset code verified"),
        verification_token=token,
    )


@router.post(
    "/reset-password",
    response_model=StatusResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid or expired verification token"}},
    summary="Set a new password",
)
def reset_password(
    request_data: ResetPasswordRequest,
    workflow: PasswordResetWorkflow = Depends(get_password_reset_workflow),
) -> StatusResponse:
    workflow.reset(request_data.verification_token, request_data.password)
    return StatusResponse(metadata=Metadata(message="Password reset successful"))


@router.post(
    "/email-verify/start",
    response_model=VerificationTokenResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Start email verification",
)
def email_verify_start(
    request_data: EmailVerifyStartRequest,
    workflow: EmailVerificationWorkflow = Depends(get_email_verification_workflow),
) -> VerificationTokenResponse:
    token = workflow.start(request_data.email)
    return VerificationTokenResponse(
        metadata=Metadata(message="Verification email sent"),
        verification_token=token,
    )


@router.post(
    "/email-verify/finish",
    response_model=StatusResponse,
    responses=UNAUTHENTICATED,
    summary="Finish email verification",
)
def email_verify_finish(
    request_data: EmailVerifyFinishRequest,
    workflow: EmailVerificationWorkflow = Depends(get_email_verification_workflow),
) -> StatusResponse:
    workflow.finish(request_data.verification_token, request_data.code)
    return StatusResponse(metadata=Metadata(message="Email verification successful"))
