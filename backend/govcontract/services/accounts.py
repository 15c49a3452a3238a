# backend/govcontract/services/accounts.py
from __future__ import annotations

import logging
import re
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import Conflict, ValidationError
from ..models.company import Company
from ..models.profile import Profile, Role
from .auth import Identity

logger = logging.getLogger(__name__)

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")

DEFAULT_INDUSTRY = "Technology"
DEFAULT_BUSINESS_TYPE = "Small Business"
DEFAULT_COMPANY_SIZE = "1-10 employees"

SELF_SERVICE_ROLES = (Role.COMPANY_OWNER, Role.TEAM_MEMBER)


def slugify(name: str) -> str:
    """
    "Acme Corp" -> "acme-corp"; "Smith & Sons, LLC" -> "smith-sons-llc".
    """
    slug = _NON_ALNUM_RUN.sub("-", (name or "").lower()).strip("-")
    return slug or "company"


def _unique_slug(db: Session, base: str) -> str:
    taken = {
        row[0]
        for row in db.query(Company.slug)
        .filter((Company.slug == base) | Company.slug.like(f"{base}-%"))
        .all()
    }
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


def lookup_account(db: Session, identity_id: UUID) -> tuple[Profile | None, Company | None]:
    """
    Profile for an identity and, when it references one, its company.

    A missing profile is the normal state for a new user.
    """
    profile = db.query(Profile).filter(Profile.id == identity_id).first()
    if profile is None or profile.company_id is None:
        return profile, None
    company = db.query(Company).filter(Company.id == profile.company_id).first()
    return profile, company


def setup_account(
    db: Session,
    identity: Identity,
    full_name: str,
    company_name: str,
    role: Role | str = Role.COMPANY_OWNER,
) -> tuple[Profile, Company]:
    """
    One-time setup: create the company and link the caller's profile to it.

    A profile left without a company (e.g. created by the auth provider's
    signup hook) is completed in place. Both writes happen in a single
    transaction; if anything fails after the company insert, the rollback
    removes it too.
    """
    full_name = (full_name or "").strip()
    company_name = (company_name or "").strip()
    if not full_name or not company_name:
        raise ValidationError("Full name and company name are required")

    try:
        role = Role(role)
    except ValueError:
        raise ValidationError(f"Unknown role: {role}")
    # Admin access is granted through ADMIN_EMAILS, never self-assigned
    if role not in SELF_SERVICE_ROLES:
        raise ValidationError(f"Role cannot be chosen during setup: {role.value}")

    profile = db.query(Profile).filter(Profile.id == identity.id).first()
    if profile is not None and profile.company_id is not None:
        raise Conflict("Profile already exists")

    try:
        company = Company(
            name=company_name,
            slug=_unique_slug(db, slugify(company_name)),
            industry=DEFAULT_INDUSTRY,
            business_type=DEFAULT_BUSINESS_TYPE,
            company_size=DEFAULT_COMPANY_SIZE,
            is_active=True,
            target_jurisdictions=["federal"],
        )
        db.add(company)
        db.flush()

        if profile is None:
            profile = Profile(id=identity.id, email=identity.email)
            db.add(profile)
        profile.full_name = full_name
        profile.role = role
        profile.company_id = company.id
        profile.email_verified = identity.email_confirmed
        profile.onboarding_completed = True
        db.flush()
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            "Account setup hit a uniqueness conflict",
            extra={"user_id": str(identity.id), "step": "setup_account"},
        )
        raise Conflict("Profile or company already exists")
    except Exception:
        db.rollback()
        logger.exception(
            "Account setup failed; transaction rolled back",
            extra={"user_id": str(identity.id), "step": "setup_account"},
        )
        raise

    db.refresh(company)
    db.refresh(profile)

    logger.info(
        "Account created",
        extra={
            "user_id": str(identity.id),
            "company_id": str(company.id),
            "step": "setup_account",
        },
    )
    return profile, company


def is_admin(profile: Profile | None, identity: Identity | None, admin_emails: set[str]) -> bool:
    email = (identity.email if identity else None) or (profile.email if profile else None)
    return bool(email) and email.lower() in admin_emails
