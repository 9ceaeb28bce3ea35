from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
import logging

from ..settings import settings
from sqlalchemy.orm import Session
from ..db import commit, get_db
from ..errors import AuthError, Forbidden, ValidationError
from ..models import ROLES, User
from ..responses import success
from ..schemas import UserOut, dump

router = APIRouter(prefix="/api/user", tags=["user"])

logger = logging.getLogger(__name__)
logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/user/token", auto_error=False)


class Token(BaseModel):
	access_token: str
	token_type: str = "bearer"


class TokenData(BaseModel):
	user_id: str
	role: str


def hash_password(password: str) -> str:
	# bcrypt only looks at the first 72 bytes
	password_bytes = password.encode('utf-8')
	if len(password_bytes) > 72:
		password_bytes = password_bytes[:72]
	return pwd_context.hash(password_bytes.decode('utf-8', errors='ignore'))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	password_bytes = plain_password.encode('utf-8')[:72]
	return pwd_context.verify(password_bytes.decode('utf-8', errors='ignore'), hashed_password)


def _resolve_expiry(expires_delta: Optional[timedelta]) -> datetime:
	delta = expires_delta
	if delta is None:
		minutes = settings.access_token_expire_minutes
		delta = timedelta(minutes=minutes) if minutes > 0 else timedelta(days=30)
	now = datetime.now(timezone.utc)
	try:
		return now + delta
	except OverflowError:
		# Cap at far future but within datetime bounds
		return datetime.max.replace(tzinfo=timezone.utc)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = {"sub": user.id, "role": user.role, "exp": _resolve_expiry(expires_delta)}
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> TokenData:
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
	except JWTError:
		raise AuthError("Invalid or expired token")
	user_id: str | None = payload.get("sub")
	role: str | None = payload.get("role")
	if user_id is None or role not in ROLES:
		raise AuthError("Invalid token payload")
	return TokenData(user_id=user_id, role=role)


def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
	if not token:
		raise AuthError("Unauthorized")
	data = verify_token(token)
	user = db.get(User, data.user_id)
	if user is None:
		raise AuthError("User not found")
	return user


def require_admin(user: User = Depends(get_current_user)) -> User:
	if user.role != "admin":
		raise Forbidden()
	return user


def _user_with_token(user: User) -> dict:
	return {"user": dump(UserOut, user), "token": create_access_token(user)}


class SignRequest(BaseModel):
	firstname: str = ""
	lastname: str = ""
	email: str = ""
	password: str = ""
	role: str = "user"


class LoginRequest(BaseModel):
	email: str = ""
	password: str = ""


class UpdateRequest(BaseModel):
	firstname: Optional[str] = None
	lastname: Optional[str] = None
	email: Optional[str] = None
	password: Optional[str] = None


class UpdatePasswordRequest(BaseModel):
	current_password: str
	new_password: str
	confirm_password: str


def _authenticate(db: Session, email: str, password: str) -> User:
	user = db.query(User).filter(User.email == email).first()
	if user is None or not verify_password(password, user.password_hash):
		raise AuthError("Incorrect email or password")
	return user


@router.post("/sign")
def sign(req: SignRequest, db: Session = Depends(get_db)):
	firstname = req.firstname.strip()
	lastname = req.lastname.strip()
	email = req.email.strip().lower()
	if not firstname or not lastname or not email or not req.password:
		raise ValidationError("firstname, lastname, email and password are required")
	if req.role not in ROLES:
		raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
	if db.query(User).filter(User.email == email).first():
		raise ValidationError("A user with this email is already registered")
	user = User(
		firstname=firstname,
		lastname=lastname,
		email=email,
		password_hash=hash_password(req.password),
		role=req.role,
	)
	db.add(user)
	commit(db)
	logger.info("Registered user %s (%s)", user.id, user.role)
	return success(_user_with_token(user), message="Registration successful")


@router.post("/login")
def login(req: LoginRequest, db: Session = Depends(get_db)):
	if not req.email or not req.password:
		raise ValidationError("email and password are required")
	user = _authenticate(db, req.email.strip().lower(), req.password)
	return success(_user_with_token(user), message="Login successful")


@router.post("/token", response_model=Token)
def token(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
	user = _authenticate(db, form_data.username.strip().lower(), form_data.password)
	return Token(access_token=create_access_token(user))


@router.get("/profile")
def profile(user: User = Depends(get_current_user)):
	return success(dump(UserOut, user))


@router.put("/update")
def update(req: UpdateRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	if req.password is not None:
		raise ValidationError("Use /api/user/update-password to change the password")
	if req.email is not None:
		email = req.email.strip().lower()
		clash = db.query(User).filter(User.email == email, User.id != user.id).first()
		if clash:
			raise ValidationError("A user with this email is already registered")
		user.email = email
	if req.firstname:
		user.firstname = req.firstname.strip()
	if req.lastname:
		user.lastname = req.lastname.strip()
	db.add(user)
	commit(db)
	return success(dump(UserOut, user))


@router.put("/update-password")
def update_password(req: UpdatePasswordRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	if not verify_password(req.current_password, user.password_hash):
		raise ValidationError("Current password is incorrect")
	if req.new_password != req.confirm_password:
		raise ValidationError("New password and confirmation do not match")
	if not req.new_password:
		raise ValidationError("New password must not be empty")
	user.password_hash = hash_password(req.new_password)
	db.add(user)
	commit(db)
	return success(dump(UserOut, user))
