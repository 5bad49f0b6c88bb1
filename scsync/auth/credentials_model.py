from dataclasses import dataclass


@dataclass
class SCCredentials:
    """
    Service account credentials for the Search Console API.
    A pair is only usable when both fields are non-empty.
    """
    client_email: str = ''
    private_key: str = ''

    @property
    def is_complete(self) -> bool:
        return bool(self.client_email) and bool(self.private_key)

    def to_service_account_info(self) -> dict:
        """Convert to the dict google-auth expects for service account credentials"""
        return {
            'type': 'service_account',
            'client_email': (self.client_email or '').strip(),
            'private_key': (self.private_key or '').replace('\\n', '\n'),
            'token_uri': 'https://oauth2.googleapis.com/token',
        }
