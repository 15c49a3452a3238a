"""
Shared test doubles and canned upstream payloads.

Payload shapes follow the public USAspending, Grants.gov and SAM.gov APIs.
"""
from datetime import datetime
from uuid import uuid4

from govcontract.models.opportunity import Opportunity
from govcontract.services.auth import Identity


class FakeAuthClient:
    """Stands in for the hosted auth provider: token -> Identity."""

    def __init__(self) -> None:
        self.identities: dict[str, Identity] = {}
        self.calls: list[str] = []

    def add(self, token: str, email: str, confirmed: bool = True) -> Identity:
        identity = Identity(
            id=uuid4(),
            email=email,
            email_confirmed_at=datetime(2026, 1, 1) if confirmed else None,
        )
        self.identities[token] = identity
        return identity

    def get_user(self, token: str) -> Identity | None:
        self.calls.append(token)
        return self.identities.get(token)

    def close(self) -> None:
        pass


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def make_opportunity(db, **overrides) -> Opportunity:
    values = {
        "source": "sam.gov",
        "external_id": uuid4().hex,
        "title": "Cloud Migration Services",
        "agency": "Department of Energy",
        "description": "Migrate legacy workloads to FedRAMP cloud.",
        "naics_codes": ["541512"],
        "jurisdiction": "federal",
        "submission_deadline": "2026-12-01",
    }
    values.update(overrides)
    opp = Opportunity(**values)
    db.add(opp)
    db.commit()
    db.refresh(opp)
    return opp


# ---------------------------------------------------------------------------
# Upstream payloads
# ---------------------------------------------------------------------------

USASPENDING_ROW = {
    "internal_id": 123456789,
    "Award ID": "W912DY24C0042",
    "Recipient Name": "ACME FEDERAL SOLUTIONS LLC",
    "Awarding Agency": "Department of Defense",
    "Awarding Sub Agency": "Department of the Army",
    "Award Amount": 1250000.5,
    "Description": "  IT MODERNIZATION SUPPORT SERVICES  ",
    "Start Date": "2025-10-01",
    "End Date": "2026-09-30",
    "NAICS": {"code": "541512", "description": "Computer Systems Design Services"},
    "generated_internal_id": "CONT_AWD_W912DY24C0042_9700_-NONE-_-NONE-",
}

GRANTS_GOV_HIT = {
    "id": "355123",
    "number": "DE-FOA-0003301",
    "title": "Grid Resilience Innovation Partnerships",
    "agencyCode": "DOE-GDO",
    "agency": "Department of Energy - Grid Deployment Office",
    "openDate": "09/02/2026",
    "closeDate": "",
    "oppStatus": "posted",
    "docType": "synopsis",
    "cfdaList": ["81.254"],
}

SAM_NOTICE = {
    "noticeId": "a1b2c3d4e5f6",
    "title": "Cybersecurity Operations Support",
    "solicitationNumber": "70RCSA26R00000012",
    "fullParentPathName": "HOMELAND SECURITY, DEPARTMENT OF.CISA",
    "postedDate": "2026-10-01",
    "type": "Solicitation",
    "responseDeadLine": "2026-11-15T17:00:00-04:00",
    "naicsCode": 541519,
    "typeOfSetAside": "SBA",
    "typeOfSetAsideDescription": "Total Small Business Set-Aside (FAR 19.5)",
    "uiLink": "https://sam.gov/opp/a1b2c3d4e5f6/view",
    "award": {"amount": "2,500,000"},
}
