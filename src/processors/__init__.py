# Billing Statements - Processors
from .classifier import DocumentType, ValidationOutcome, classify, validate_billing_headers
from .email_composer import DraftBatch, EmailDraft, compose, compose_drafts
from .field_resolver import FIELD_ALIASES, CanonicalField, parse_amount, resolve
from .identity_matcher import DEFAULT_STRATEGIES, IdentityMatcher, MatchStrategy
from .record_builder import PatientDocument, build_patient_documents
from .text_renderer import PracticeInfo, build_page_markup, render_text

__all__ = [
    "CanonicalField",
    "DEFAULT_STRATEGIES",
    "DocumentType",
    "DraftBatch",
    "EmailDraft",
    "FIELD_ALIASES",
    "IdentityMatcher",
    "MatchStrategy",
    "PatientDocument",
    "PracticeInfo",
    "ValidationOutcome",
    "build_page_markup",
    "build_patient_documents",
    "classify",
    "compose",
    "compose_drafts",
    "parse_amount",
    "render_text",
    "resolve",
    "validate_billing_headers",
]
