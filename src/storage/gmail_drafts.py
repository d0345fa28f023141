"""Gmail Drafts Client - creates composed email drafts in a Gmail account"""

import base64
import logging
from dataclasses import dataclass
from email.mime.text import MIMEText
from pathlib import Path

from ..processors.email_composer import EmailDraft

logger = logging.getLogger(__name__)


@dataclass
class DraftResult:
    patient_name: str
    to: str
    draft_id: str | None = None
    error: str | None = None


class GmailDraftClient:
    """Create Gmail drafts through the Gmail API (OAuth installed-app flow)."""

    SCOPES = ["https://www.googleapis.com/auth/gmail.compose"]

    def __init__(self, credentials_file: str, token_file: str, user_email: str = "me"):
        self.credentials_file = Path(credentials_file)
        self.token_file = Path(token_file)
        self.user_email = user_email
        self._service = None

    def _get_service(self):
        if self._service is not None:
            return self._service

        try:
            from google.auth.transport.requests import Request
            from google.oauth2.credentials import Credentials
            from google_auth_oauthlib.flow import InstalledAppFlow
            from googleapiclient.discovery import build
        except ImportError as err:
            raise ImportError(
                "Google client packages not installed. Run: pip install "
                "google-api-python-client google-auth google-auth-oauthlib"
            ) from err

        creds = None
        if self.token_file.exists():
            creds = Credentials.from_authorized_user_file(str(self.token_file), self.SCOPES)

        if not creds or not creds.valid:
            if creds and creds.expired and creds.refresh_token:
                creds.refresh(Request())
            else:
                flow = InstalledAppFlow.from_client_secrets_file(
                    str(self.credentials_file), self.SCOPES
                )
                creds = flow.run_local_server(port=0)

            self.token_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.token_file, "w") as f:
                f.write(creds.to_json())

        self._service = build("gmail", "v1", credentials=creds)
        return self._service

    @staticmethod
    def encode_message(draft: EmailDraft) -> str:
        """RFC 2822 message, base64url-encoded as the Gmail API expects."""
        message = MIMEText(draft.body, "plain", "utf-8")
        message["to"] = draft.to
        message["subject"] = draft.subject
        return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii")

    def create_draft(self, draft: EmailDraft) -> str:
        """Create one draft and return its Gmail draft ID."""
        service = self._get_service()
        body = {"message": {"raw": self.encode_message(draft)}}
        created = service.users().drafts().create(userId=self.user_email, body=body).execute()
        draft_id = created.get("id", "")
        logger.info(f"Created Gmail draft {draft_id} for {draft.patient_name}")
        return draft_id

    def create_drafts(self, drafts: list[EmailDraft]) -> list[DraftResult]:
        """Create every draft; a failure for one patient does not stop the rest."""
        results = []
        for draft in drafts:
            try:
                draft_id = self.create_draft(draft)
                results.append(DraftResult(draft.patient_name, draft.to, draft_id=draft_id))
            except Exception as e:
                logger.error(f"Failed to create Gmail draft for {draft.patient_name}: {e}")
                results.append(DraftResult(draft.patient_name, draft.to, error=str(e)))
        return results


def setup_gmail_oauth(credentials_file: str, token_file: str):
    client = GmailDraftClient(credentials_file=credentials_file, token_file=token_file)
    service = client._get_service()
    profile = service.users().getProfile(userId="me").execute()
    print(f"Successfully authorized: {profile['emailAddress']}")


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "setup":
        creds = sys.argv[2] if len(sys.argv) > 2 else "config/credentials/gmail_credentials.json"
        token = sys.argv[3] if len(sys.argv) > 3 else "config/credentials/gmail_token.json"
        setup_gmail_oauth(creds, token)
