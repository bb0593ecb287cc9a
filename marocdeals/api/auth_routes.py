import jwt
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from marocdeals.schemas.auth_scheme import (
    LoginRequest,
    SessionResponse,
    SignupRequest,
    VerificationCheckRequest,
    VerificationRequest,
)
from marocdeals.services.auth_flow import AuthFlow
from marocdeals.services.auth_service import decode_access_token
from marocdeals.services.errors import (
    AccountNotVerified,
    AlreadyExists,
    AuthFlowError,
    DeliveryFailed,
    InvalidCredentials,
    NotVerified,
    VerificationError,
)

router = APIRouter()
security = HTTPBearer()

STATUS_BY_ERROR = {
    VerificationError: status.HTTP_400_BAD_REQUEST,
    NotVerified: status.HTTP_400_BAD_REQUEST,
    DeliveryFailed: status.HTTP_502_BAD_GATEWAY,
    AlreadyExists: status.HTTP_409_CONFLICT,
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    AccountNotVerified: status.HTTP_403_FORBIDDEN,
}


def get_auth_flow(request: Request) -> AuthFlow:
    return request.app.state.auth_flow


def to_http_error(error: AuthFlowError) -> HTTPException:
    status_code = next(
        (code for kind, code in STATUS_BY_ERROR.items() if isinstance(error, kind)),
        status.HTTP_400_BAD_REQUEST,
    )
    return HTTPException(status_code=status_code, detail={"reason": error.reason, "message": error.message})


# Send verification code
@router.post("/verification/request")
async def request_verification(request: VerificationRequest, flow: AuthFlow = Depends(get_auth_flow)):
    try:
        await flow.request_code(request.identity)
    except AuthFlowError as e:
        raise to_http_error(e)
    return {"status": "success", "message": "Code de vérification envoyé"}


# Check a verification code (does not create the account)
@router.post("/verification/check")
async def check_verification(request: VerificationCheckRequest, flow: AuthFlow = Depends(get_auth_flow)):
    try:
        flow.submit_code(request.identity, request.code)
    except AuthFlowError as e:
        raise to_http_error(e)
    return {"status": "success", "message": "Code vérifié avec succès"}


# Create the account of a verified email
@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=SessionResponse)
async def signup(request: SignupRequest, flow: AuthFlow = Depends(get_auth_flow)):
    try:
        session = flow.create_account(request.identity, request.username, request.password)
    except AuthFlowError as e:
        raise to_http_error(e)
    return SessionResponse(token=session.token, username=session.user.username, message="Compte créé avec succès !")


@router.post("/login", response_model=SessionResponse)
async def login(request: LoginRequest, flow: AuthFlow = Depends(get_auth_flow)):
    try:
        session = flow.login(request.identity, request.password)
    except AuthFlowError as e:
        raise to_http_error(e)
    return SessionResponse(token=session.token, username=session.user.username, message="Connexion réussie")


@router.get("/validate-token")
async def validate_token(credentials: HTTPAuthorizationCredentials = Depends(security)):
    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expiré")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Token invalide")
    return {"status": "success", "message": "Token valide", "data": payload}
