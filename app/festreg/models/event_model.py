from sqlalchemy import Column, Integer, String, Float, Text, Boolean, DateTime, JSON, CheckConstraint
from sqlalchemy.orm import relationship
from festreg.database import Base, utcnow

class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("team_size_min >= 1", name="ck_events_team_size_min"),
        CheckConstraint("team_size_min <= team_size_max", name="ck_events_team_size_bounds"),
        CheckConstraint("fees >= 0", name="ck_events_fees"),
    )

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String, nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    introduction = Column(Text, nullable=True)
    category = Column(String, nullable=False, index=True)
    venue = Column(String, nullable=True)
    logo = Column(String, nullable=True)

    fees = Column(Float, nullable=False, default=0)
    team_size_min = Column(Integer, nullable=False, default=1)
    team_size_max = Column(Integer, nullable=False, default=1)
    max_cap = Column(Integer, nullable=True)  # None means unlimited

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    is_hackathon = Column(Boolean, nullable=False, default=False)

    # Sub-documents, validated by festreg.schema.event_schema before they land here
    contact = Column(JSON, nullable=False, default=list)
    prizes = Column(JSON, nullable=False, default=list)
    schedule = Column(JSON, nullable=False, default=list)
    rules = Column(JSON, nullable=False, default=list)
    platform = Column(JSON, nullable=False, default=list)
    links = Column(JSON, nullable=False, default=list)
    # [{domain_id, name, description, problem_statements: [{ps_id, title, description, difficulty}]}]
    domains = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    registrations = relationship("Registration", back_populates="event")

    def find_domain(self, domain_id):
        for domain in self.domains or []:
            if domain.get("domain_id") == domain_id:
                return domain
        return None

    def find_problem_statement(self, domain_id, ps_id):
        domain = self.find_domain(domain_id)
        if not domain:
            return None
        for ps in domain.get("problem_statements") or []:
            if ps.get("ps_id") == ps_id:
                return ps
        return None
