"""
Database abstraction for Postgres and an in-memory test implementation.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Protocol

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    func,
    select,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from portal_backend.errors import DuplicateKeyError

MEMBER_STATUSES = ("active", "pending", "inactive")


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


@dataclass
class MemberRecord:
    first_name: str
    father_name: str
    grand_father_name: str = ""
    gender: str = ""
    age: Optional[int] = None
    date_of_birth: Optional[str] = None
    phone: str = ""
    email: str = ""
    subcity: str = ""
    woreda: str = ""
    kebele: Optional[str] = None
    house_number: Optional[str] = None
    education_level: Optional[str] = None
    occupation: Optional[str] = None
    membership_date: Optional[str] = None
    membership_fee_paid: Optional[bool] = None
    membership_id: Optional[str] = None
    status: str = "active"
    uploaded_by: Optional[str] = None
    uploaded_by_email: Optional[str] = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    @property
    def full_name(self) -> str:
        parts = (self.first_name, self.father_name, self.grand_father_name)
        return " ".join(p for p in parts if p)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class MembershipApplicationRecord:
    full_name: str
    phone: str
    woreda: str
    kebele: str
    age: int
    education_level: str
    occupation: str
    email: Optional[str] = None
    status: str = "pending"
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class QretaRecord:
    full_name: str
    phone: str
    category: str
    woreda: str
    kebele: str
    message: str
    email: Optional[str] = None
    file_url: Optional[str] = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class ReportRecord:
    full_name: str
    phone: str
    woreda: str
    kebele: str
    report_type: str
    report_details: str = ""
    email: Optional[str] = None
    file_url: Optional[str] = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class AccountRecord:
    email: str
    password_hash: str
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)


@dataclass
class AdminRecord:
    email: str
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)


class DbClient(Protocol):
    """Interface for database access."""

    def insert_member(self, record: MemberRecord) -> MemberRecord:
        ...

    def insert_members(self, records: Iterable[MemberRecord]) -> list[MemberRecord]:
        ...

    def get_member(self, member_id: str) -> Optional[MemberRecord]:
        ...

    def list_members(self, limit: Optional[int] = None) -> list[MemberRecord]:
        ...

    def insert_application(
        self, record: MembershipApplicationRecord
    ) -> MembershipApplicationRecord:
        ...

    def get_application(self, app_id: str) -> Optional[MembershipApplicationRecord]:
        ...

    def list_applications(self) -> list[MembershipApplicationRecord]:
        ...

    def update_application_status(
        self, app_id: str, status: str
    ) -> Optional[MembershipApplicationRecord]:
        ...

    def insert_qreta(self, record: QretaRecord) -> QretaRecord:
        ...

    def get_qreta(self, qreta_id: str) -> Optional[QretaRecord]:
        ...

    def list_qreta(self) -> list[QretaRecord]:
        ...

    def insert_report(self, record: ReportRecord) -> ReportRecord:
        ...

    def get_report(self, report_id: str) -> Optional[ReportRecord]:
        ...

    def list_reports(self) -> list[ReportRecord]:
        ...

    def create_account(self, email: str, password_hash: str) -> AccountRecord:
        ...

    def get_account(self, account_id: str) -> Optional[AccountRecord]:
        ...

    def get_account_by_email(self, email: str) -> Optional[AccountRecord]:
        ...

    def add_admin(self, email: str) -> AdminRecord:
        ...

    def is_admin(self, email: str) -> bool:
        ...

    def list_admins(self) -> list[AdminRecord]:
        ...

    def count_summary(self) -> dict:
        ...


def _newest_first(records):
    return sorted(records, key=lambda r: r.created_at, reverse=True)


def _summary(members: int, statuses: Iterable[str], qreta: int, reports: int) -> dict:
    statuses = list(statuses)
    return {
        "members": members,
        "applications": len(statuses),
        "applications_pending": statuses.count("pending"),
        "applications_accepted": statuses.count("accepted"),
        "applications_rejected": statuses.count("rejected"),
        "qreta": qreta,
        "reports": reports,
    }


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.members: Dict[str, MemberRecord] = {}
        self.applications: Dict[str, MembershipApplicationRecord] = {}
        self.qreta: Dict[str, QretaRecord] = {}
        self.reports: Dict[str, ReportRecord] = {}
        self.accounts: Dict[str, AccountRecord] = {}
        self.admins: Dict[str, AdminRecord] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.members.clear()
        self.applications.clear()
        self.qreta.clear()
        self.reports.clear()
        self.accounts.clear()
        self.admins.clear()

    def insert_member(self, record: MemberRecord) -> MemberRecord:
        self.members[record.id] = record
        return record

    def insert_members(self, records: Iterable[MemberRecord]) -> list[MemberRecord]:
        return [self.insert_member(record) for record in records]

    def get_member(self, member_id: str) -> Optional[MemberRecord]:
        return self.members.get(member_id)

    def list_members(self, limit: Optional[int] = None) -> list[MemberRecord]:
        members = _newest_first(self.members.values())
        return members[:limit] if limit is not None else members

    def insert_application(
        self, record: MembershipApplicationRecord
    ) -> MembershipApplicationRecord:
        self.applications[record.id] = record
        return record

    def get_application(self, app_id: str) -> Optional[MembershipApplicationRecord]:
        return self.applications.get(app_id)

    def list_applications(self) -> list[MembershipApplicationRecord]:
        return _newest_first(self.applications.values())

    def update_application_status(
        self, app_id: str, status: str
    ) -> Optional[MembershipApplicationRecord]:
        record = self.applications.get(app_id)
        if not record:
            return None
        record = replace(record, status=status)
        self.applications[app_id] = record
        return record

    def insert_qreta(self, record: QretaRecord) -> QretaRecord:
        self.qreta[record.id] = record
        return record

    def get_qreta(self, qreta_id: str) -> Optional[QretaRecord]:
        return self.qreta.get(qreta_id)

    def list_qreta(self) -> list[QretaRecord]:
        return _newest_first(self.qreta.values())

    def insert_report(self, record: ReportRecord) -> ReportRecord:
        self.reports[record.id] = record
        return record

    def get_report(self, report_id: str) -> Optional[ReportRecord]:
        return self.reports.get(report_id)

    def list_reports(self) -> list[ReportRecord]:
        return _newest_first(self.reports.values())

    def create_account(self, email: str, password_hash: str) -> AccountRecord:
        email = normalize_email(email)
        if self.get_account_by_email(email):
            raise DuplicateKeyError(email)
        record = AccountRecord(email=email, password_hash=password_hash)
        self.accounts[record.id] = record
        return record

    def get_account(self, account_id: str) -> Optional[AccountRecord]:
        return self.accounts.get(account_id)

    def get_account_by_email(self, email: str) -> Optional[AccountRecord]:
        email = normalize_email(email)
        for account in self.accounts.values():
            if account.email == email:
                return account
        return None

    def add_admin(self, email: str) -> AdminRecord:
        email = normalize_email(email)
        if email in self.admins:
            raise DuplicateKeyError(email)
        record = AdminRecord(email=email)
        self.admins[email] = record
        return record

    def is_admin(self, email: str) -> bool:
        return normalize_email(email) in self.admins

    def list_admins(self) -> list[AdminRecord]:
        return sorted(self.admins.values(), key=lambda a: a.created_at)

    def count_summary(self) -> dict:
        return _summary(
            len(self.members),
            (a.status for a in self.applications.values()),
            len(self.qreta),
            len(self.reports),
        )


Base = declarative_base()


class MemberRow(Base):
    __tablename__ = "members"

    id = Column(String, primary_key=True)
    first_name = Column(String, nullable=False)
    father_name = Column(String, nullable=False)
    grand_father_name = Column(String, nullable=False, default="")
    gender = Column(String, nullable=False, default="")
    age = Column(Integer, nullable=True)
    date_of_birth = Column(String, nullable=True)
    phone = Column(String, nullable=False, default="", index=True)
    email = Column(String, nullable=False, default="")
    subcity = Column(String, nullable=False, default="")
    woreda = Column(String, nullable=False, default="", index=True)
    kebele = Column(String, nullable=True)
    house_number = Column(String, nullable=True)
    education_level = Column(String, nullable=True)
    occupation = Column(String, nullable=True)
    membership_date = Column(String, nullable=True)
    membership_fee_paid = Column(Boolean, nullable=True)
    membership_id = Column(String, nullable=True, index=True)
    status = Column(String, nullable=False, default="active")
    uploaded_by = Column(String, nullable=True)
    uploaded_by_email = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)


class MembershipApplicationRow(Base):
    __tablename__ = "abalat_mzgeba_submissions"

    id = Column(String, primary_key=True)
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True)
    woreda = Column(String, nullable=False)
    kebele = Column(String, nullable=False)
    age = Column(Integer, nullable=False)
    education_level = Column(String, nullable=False)
    occupation = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending", index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)


class QretaRow(Base):
    __tablename__ = "qreta_submissions"

    id = Column(String, primary_key=True)
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True)
    category = Column(String, nullable=False)
    woreda = Column(String, nullable=False)
    kebele = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    file_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)


class ReportRow(Base):
    __tablename__ = "report_submissions"

    id = Column(String, primary_key=True)
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True)
    woreda = Column(String, nullable=False)
    kebele = Column(String, nullable=False)
    report_type = Column(String, nullable=False)
    report_details = Column(Text, nullable=False, default="")
    file_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)


class AccountRow(Base):
    __tablename__ = "accounts"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class AdminRow(Base):
    __tablename__ = "admins"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _to_record(row, record_cls):
        values = {f.name: getattr(row, f.name) for f in fields(record_cls)}
        created_at = values.get("created_at")
        # SQLite drops the tzinfo on the way back.
        if created_at is not None and created_at.tzinfo is None:
            values["created_at"] = created_at.replace(tzinfo=timezone.utc)
        return record_cls(**values)

    def _insert(self, row_cls, record):
        with self.Session() as session:
            session.add(row_cls(**asdict(record)))
            session.commit()
        return record

    def _get(self, row_cls, record_cls, key: str):
        with self.Session() as session:
            row = session.get(row_cls, key)
            return self._to_record(row, record_cls) if row else None

    def _list(self, row_cls, record_cls, limit: Optional[int] = None):
        with self.Session() as session:
            stmt = select(row_cls).order_by(row_cls.created_at.desc())
            if limit is not None:
                stmt = stmt.limit(limit)
            rows = session.execute(stmt).scalars().all()
            return [self._to_record(row, record_cls) for row in rows]

    def insert_member(self, record: MemberRecord) -> MemberRecord:
        return self._insert(MemberRow, record)

    def insert_members(self, records: Iterable[MemberRecord]) -> list[MemberRecord]:
        records = list(records)
        with self.Session() as session:
            session.add_all([MemberRow(**asdict(record)) for record in records])
            session.commit()
        return records

    def get_member(self, member_id: str) -> Optional[MemberRecord]:
        return self._get(MemberRow, MemberRecord, member_id)

    def list_members(self, limit: Optional[int] = None) -> list[MemberRecord]:
        return self._list(MemberRow, MemberRecord, limit)

    def insert_application(
        self, record: MembershipApplicationRecord
    ) -> MembershipApplicationRecord:
        return self._insert(MembershipApplicationRow, record)

    def get_application(self, app_id: str) -> Optional[MembershipApplicationRecord]:
        return self._get(MembershipApplicationRow, MembershipApplicationRecord, app_id)

    def list_applications(self) -> list[MembershipApplicationRecord]:
        return self._list(MembershipApplicationRow, MembershipApplicationRecord)

    def update_application_status(
        self, app_id: str, status: str
    ) -> Optional[MembershipApplicationRecord]:
        with self.Session() as session:
            row = session.get(MembershipApplicationRow, app_id)
            if not row:
                return None
            row.status = status
            session.commit()
            session.refresh(row)
            return self._to_record(row, MembershipApplicationRecord)

    def insert_qreta(self, record: QretaRecord) -> QretaRecord:
        return self._insert(QretaRow, record)

    def get_qreta(self, qreta_id: str) -> Optional[QretaRecord]:
        return self._get(QretaRow, QretaRecord, qreta_id)

    def list_qreta(self) -> list[QretaRecord]:
        return self._list(QretaRow, QretaRecord)

    def insert_report(self, record: ReportRecord) -> ReportRecord:
        return self._insert(ReportRow, record)

    def get_report(self, report_id: str) -> Optional[ReportRecord]:
        return self._get(ReportRow, ReportRecord, report_id)

    def list_reports(self) -> list[ReportRecord]:
        return self._list(ReportRow, ReportRecord)

    def create_account(self, email: str, password_hash: str) -> AccountRecord:
        record = AccountRecord(email=normalize_email(email), password_hash=password_hash)
        try:
            return self._insert(AccountRow, record)
        except IntegrityError as exc:
            raise DuplicateKeyError(record.email) from exc

    def get_account(self, account_id: str) -> Optional[AccountRecord]:
        return self._get(AccountRow, AccountRecord, account_id)

    def get_account_by_email(self, email: str) -> Optional[AccountRecord]:
        with self.Session() as session:
            stmt = select(AccountRow).where(AccountRow.email == normalize_email(email))
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_record(row, AccountRecord) if row else None

    def add_admin(self, email: str) -> AdminRecord:
        record = AdminRecord(email=normalize_email(email))
        try:
            return self._insert(AdminRow, record)
        except IntegrityError as exc:
            raise DuplicateKeyError(record.email) from exc

    def is_admin(self, email: str) -> bool:
        with self.Session() as session:
            stmt = select(AdminRow.id).where(AdminRow.email == normalize_email(email))
            return session.execute(stmt).first() is not None

    def list_admins(self) -> list[AdminRecord]:
        with self.Session() as session:
            rows = session.execute(
                select(AdminRow).order_by(AdminRow.created_at.asc())
            ).scalars().all()
            return [self._to_record(row, AdminRecord) for row in rows]

    def count_summary(self) -> dict:
        with self.Session() as session:
            members = session.execute(select(func.count(MemberRow.id))).scalar_one()
            statuses = session.execute(select(MembershipApplicationRow.status)).scalars()
            qreta = session.execute(select(func.count(QretaRow.id))).scalar_one()
            reports = session.execute(select(func.count(ReportRow.id))).scalar_one()
            return _summary(members, statuses, qreta, reports)
