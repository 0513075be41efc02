"""
Python client for interacting with the Pardot REST API.

This package provides a simple `PardotClient` class that logs in to
Pardot with an email address, password and user key, and then reads,
creates, updates, upserts, queries and deletes objects through version
4 of the API.

Examples
--------

```python
from pardot_api_client import PardotClient

client = PardotClient()
client.set_auth("me@example.com", "secret", "my-user-key").authenticate()

# Read a single prospect; an empty dict means Pardot returned none
prospect = client.read("Prospect", 42)

# Query returns a list of matching objects
visits = client.query("VisitorActivity", {"created_after": "2020-01-01"})

# Delete reports success as a boolean instead of raising
if not client.delete("Prospect", 42):
    print("prospect was not deleted")
```

Object types are used verbatim in the URL and snake-cased to find the
object in the response, so ``"VisitorActivity"`` is read back from the
``visitor_activity`` key.
"""

from .client import PardotClient
from .encoding import snake_case
from .exceptions import PardotAPIError, PardotAuthError, PardotError

__all__ = [
    "PardotClient",
    "PardotError",
    "PardotAuthError",
    "PardotAPIError",
    "snake_case",
]
