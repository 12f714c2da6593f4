"""
Standalone script to connect the assistant's Google account from a terminal.

This script will:
1. Open a browser for you to log in with Google
2. Save the token record where the server reads it (DATA_DIR/tokens.json)
3. Test the credentials by listing your recent emails and today's events

Use it instead of the dashboard sign-in when the server is not reachable from
a browser.

Usage:
    python3 authenticate_google.py
"""
import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before the app settings are created
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path, override=True)

from google_auth_oauthlib.flow import InstalledAppFlow  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.core.google_oauth import (  # noqa: E402
    GOOGLE_SCOPES,
    _token_data_from_credentials,
    get_user_info,
)
from app.core.store import JsonFileStore  # noqa: E402


def _client_config() -> dict:
    return {
        "installed": {
            "client_id": settings.GOOGLE_CLIENT_ID,
            "client_secret": settings.GOOGLE_CLIENT_SECRET,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": ["http://localhost"],
        }
    }


def authenticate() -> bool:
    """Authenticate with Google and save the token record."""
    print("=" * 80)
    print("🔐 Google Authentication")
    print("=" * 80)

    store = JsonFileStore(settings.token_file)
    if store.exists():
        print(f"\n📄 Found existing token file at {store.path}, it will be replaced.")

    print("\n🌐 Opening browser for authentication...")
    print("Please log in with your Google account and grant permissions.")

    try:
        flow = InstalledAppFlow.from_client_config(_client_config(), GOOGLE_SCOPES)
        creds = flow.run_local_server(port=0, access_type="offline", prompt="consent")
        print("✅ Authentication successful!")
    except Exception as e:
        print(f"❌ Authentication failed: {e}")
        return False

    token_data = _token_data_from_credentials(creds)

    user_info = asyncio.run(get_user_info(creds.token))
    if user_info:
        token_data["account"] = {"email": user_info.get("email"), "name": user_info.get("name")}
        print(f"👤 Signed in as {user_info.get('email')}")

    print(f"\n💾 Saving credentials to {store.path}...")
    if not store.save(token_data):
        print("❌ Could not write the token file")
        return False
    print("✅ Credentials saved")

    # Test the credentials
    print("\n🧪 Testing credentials...")
    try:
        from app.services.calendar import CalendarService
        from app.services.gmail import GmailService

        since = int((datetime.now(timezone.utc) - timedelta(days=1)).timestamp())
        messages = GmailService(creds.token).list_received_since(since, max_results=5)
        print("✅ Successfully connected to Gmail!")
        print(f"✅ Found {len(messages)} emails from the last 24 hours")
        for i, msg in enumerate(messages[:3], 1):
            print(f"  {i}. {msg['subject'][:50]}... - {msg['from']}")

        now = datetime.now(timezone.utc)
        events = CalendarService(creds.token).list_events(
            now.isoformat(), (now + timedelta(days=1)).isoformat(), max_results=5
        )
        print(f"✅ Found {len(events)} events in the next 24 hours")

    except Exception as e:
        print(f"❌ Error testing credentials: {e}")
        return False

    print("\n" + "=" * 80)
    print("✅ Authentication complete!")
    print("=" * 80)
    print("\nStart the server with: uvicorn app.main:app")

    return True


if __name__ == "__main__":
    success = authenticate()
    sys.exit(0 if success else 1)
