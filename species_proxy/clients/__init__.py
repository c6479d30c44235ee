"""
Client modules for external services.

- UpstreamTransport: executes adapter-built classifier calls
- WarehouseClient: species warehouse read auth and taxa search
- RecordCleanerClient: Record Cleaner token and verify calls
- fetch_password_grant_token: OAuth2 password grant shared by the above
"""

from species_proxy.clients.oauth import fetch_password_grant_token
from species_proxy.clients.record_cleaner import RecordCleanerClient
from species_proxy.clients.upstream import UpstreamTransport
from species_proxy.clients.warehouse import WarehouseClient


__all__ = [
    'RecordCleanerClient',
    'UpstreamTransport',
    'WarehouseClient',
    'fetch_password_grant_token',
]
