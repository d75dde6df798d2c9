import logging
from fastapi import APIRouter, Depends, HTTPException
from ayurdiet.auth import UserPrincipal, create_token, get_current_user, get_redirect_url, verify_identity_token
from ayurdiet.dependencies import get_account_store
from ayurdiet.exceptions import StoreError
from ayurdiet.schemas.user import DietitianCard, SignupRequest, TokenRequest, TokenResponse, UserResponse
from ayurdiet.services.stores import AccountStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _role_fields(role: str) -> dict:
    if role == "dietitian":
        return {"linked_patient_ids": []}
    if role == "patient":
        return {"linked_dietitian_id": None, "is_assigned_to_dietitian": False}
    return {}


def _verified_identity(id_token: str) -> tuple[str, str]:
    """(uid, email) from a provider ID token, or 401."""
    claims = verify_identity_token(id_token)
    if claims is None:
        raise HTTPException(status_code=401, detail="Invalid identity token")
    return claims["sub"], claims["email"].lower().strip()


@router.post("/signup", response_model=TokenResponse)
async def signup(body: SignupRequest, accounts: AccountStore = Depends(get_account_store)):
    """
    Create the account document for an identity issued by the auth provider.
    Idempotent: an existing account for the same uid and email is returned as-is.
    """
    uid, email = _verified_identity(body.id_token)
    existing = await accounts.get(uid)
    if existing is not None:
        if existing.email != email:
            raise HTTPException(status_code=409, detail="Account exists with a different email")
        user = existing
    else:
        if await accounts.get_by_email(email) is not None:
            raise HTTPException(status_code=409, detail="Email is already registered to another account")
        name = f"{body.first_name} {body.last_name}".strip()
        try:
            user = await accounts.create(
                uid,
                {"email": email, "name": name, "role": body.role, **_role_fields(body.role)},
            )
        except StoreError as e:
            logger.error("Signup failed for %s: %s", email, e)
            raise HTTPException(status_code=500, detail="Unable to create user profile")

    return TokenResponse(
        access_token=create_token(user),
        redirect=get_redirect_url(user.role),
        user=UserResponse.model_validate(user),
    )


@router.post("/token", response_model=TokenResponse)
async def get_token(body: TokenRequest, accounts: AccountStore = Depends(get_account_store)):
    """Exchange a provider ID token for a session token."""
    uid, email = _verified_identity(body.id_token)
    user = await accounts.get(uid)
    if not user:
        raise HTTPException(status_code=404, detail="No account found for this identity")
    if user.email != email:
        raise HTTPException(status_code=401, detail="Identity token does not match the account")
    return TokenResponse(
        access_token=create_token(user),
        redirect=get_redirect_url(user.role),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def me(
    current_user: UserPrincipal = Depends(get_current_user),
    accounts: AccountStore = Depends(get_account_store),
):
    user = await accounts.get(current_user.user_id)
    return UserResponse.model_validate(user)


@router.get("/dietitians/{dietitian_id}", response_model=DietitianCard)
async def get_dietitian(
    dietitian_id: str,
    accounts: AccountStore = Depends(get_account_store),
    current_user: UserPrincipal = Depends(get_current_user),
):
    user = await accounts.get(dietitian_id)
    if not user or user.role != "dietitian":
        raise HTTPException(status_code=404, detail="Dietitian not found")
    return DietitianCard(
        id=user.id,
        name=user.name or "",
        profile_image=user.profile_image,
        specialization=user.specialization,
        years_of_experience=user.years_of_experience or 0,
        patients_served=len(user.linked_patient_ids or []),
        is_verified=bool(user.is_verified),
        rating=user.rating or 0,
    )
