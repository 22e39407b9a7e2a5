"""Authentication API endpoints: signup, login and password flows."""

import structlog
from fastapi import APIRouter, Depends, Request, status

from authgate.api.dependencies import (
    get_auth_context,
    get_email_service,
    get_password_service,
    get_public_base_url,
    get_reset_token_service,
    get_token_service,
    get_user_service,
)
from authgate.errors import NotFound, ServerError, TokenInvalidOrExpired, Unauthorized, ValidationError
from authgate.models.auth import (
    AuthContext,
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
    UpdatePasswordRequest,
    UserData,
)
from authgate.models.user import User, UserSummary
from authgate.services.email_service import EmailService
from authgate.services.password_service import DUMMY_PASSWORD_HASH, PasswordService
from authgate.services.reset_token_service import ResetTokenService
from authgate.services.token_service import TokenService
from authgate.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["Auth"])

INCORRECT_CREDENTIALS = "Incorrect email or password"


def _reset_url(request: Request, plain_token: str, public_base_url: str) -> str:
    """Absolute reset link, on the configured public origin when one is set."""
    if public_base_url:
        path = request.app.url_path_for("reset_password", token=plain_token)
        return f"{public_base_url.rstrip('/')}{path}"
    return str(request.url_for("reset_password", token=plain_token))


def _auth_response(user: User, token_service: TokenService) -> AuthResponse:
    """Issue a fresh session token and wrap it with the sanitized user."""
    return AuthResponse(
        token=token_service.issue(user.id),
        data=UserData(user=UserSummary.from_user(user)),
    )


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    user_service: UserService = Depends(get_user_service),
    token_service: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Create an account and log it in.

    Raises:
        ValidationError 400: If the email is already registered
    """
    user = await user_service.create_user(
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
    )
    logger.info("user_signed_up", user_id=str(user.id))
    return _auth_response(user, token_service)


@router.post("/login")
async def login(
    body: LoginRequest,
    user_service: UserService = Depends(get_user_service),
    password_service: PasswordService = Depends(get_password_service),
    token_service: TokenService = Depends(get_token_service),
) -> TokenResponse:
    """Log in with email and password.

    Unknown email and wrong password fail identically.

    Raises:
        ValidationError 400: If email or password is missing
        Unauthorized 401: If the credentials do not match
    """
    if not body.email or not body.password:
        raise ValidationError("Please provide email and password")

    record = await user_service.get_record_by_email(body.email.strip().lower())

    # Always run one bcrypt check so response time does not reveal the email.
    password_hash = record.password_hash if record is not None else DUMMY_PASSWORD_HASH
    password_ok = password_service.check_password(body.password, password_hash)

    if record is None or not password_ok:
        logger.info("login_failed")
        raise Unauthorized(INCORRECT_CREDENTIALS)

    logger.info("user_logged_in", user_id=str(record.id))
    return TokenResponse(token=token_service.issue(record.id))


@router.post("/forgotPassword")
async def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    user_service: UserService = Depends(get_user_service),
    reset_tokens: ResetTokenService = Depends(get_reset_token_service),
    email_service: EmailService = Depends(get_email_service),
    public_base_url: str = Depends(get_public_base_url),
) -> MessageResponse:
    """Email a one-time password reset link.

    Raises:
        NotFound 404: If no user has this email
        ServerError 500: If the email could not be sent
    """
    record = await user_service.get_record_by_email(body.email)
    if record is None:
        raise NotFound("There is no user with that email address")

    reset = reset_tokens.generate()
    await user_service.set_reset_token(record.id, reset.hashed_token, reset.expires_at)

    reset_url = _reset_url(request, reset.plain_token, public_base_url)
    try:
        sent = await email_service.send_password_reset(record.email, reset_url)
    except Exception as e:
        logger.error("password_reset_email_raised", user_id=str(record.id), error=str(e))
        sent = False

    if not sent:
        await user_service.clear_reset_token(record.id)
        logger.error("password_reset_email_failed", user_id=str(record.id))
        raise ServerError("There was an error sending the email. Try again later")

    logger.info("password_reset_requested", user_id=str(record.id))
    return MessageResponse(message="Token sent to email!")


@router.patch("/resetPassword/{token}")
async def reset_password(
    token: str,
    body: ResetPasswordRequest,
    user_service: UserService = Depends(get_user_service),
    reset_tokens: ResetTokenService = Depends(get_reset_token_service),
    token_service: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Set a new password using an emailed reset token, then log in.

    Raises:
        TokenInvalidOrExpired 400: If the token is unknown, used or expired
    """
    record = await user_service.get_record_by_reset_token(
        ResetTokenService.hash_token(token)
    )
    if record is None:
        raise TokenInvalidOrExpired()

    reset_tokens.match(token, record.password_reset_token, record.password_reset_expires)

    user = await user_service.set_password(record.id, body.password)
    if user is None:
        raise TokenInvalidOrExpired()

    logger.info("password_reset_completed", user_id=str(user.id))
    return _auth_response(user, token_service)


@router.patch("/updateMyPassword")
async def update_password(
    body: UpdatePasswordRequest,
    context: AuthContext = Depends(get_auth_context),
    user_service: UserService = Depends(get_user_service),
    password_service: PasswordService = Depends(get_password_service),
    token_service: TokenService = Depends(get_token_service),
) -> AuthResponse:
    """Change the logged-in user's password and issue a new token.

    Raises:
        Unauthorized 401: If passwordCurrent is wrong
    """
    record = await user_service.get_record_by_id(context.user.id)
    if record is None or not password_service.check_password(
        body.password_current, record.password_hash
    ):
        raise Unauthorized("Your current password is wrong")

    user = await user_service.set_password(record.id, body.password)
    if user is None:
        raise Unauthorized("The user belonging to this token no longer exists")

    return _auth_response(user, token_service)
