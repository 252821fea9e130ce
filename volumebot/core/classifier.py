"""
Network classification of raw token/wallet addresses.
"""

import re
from typing import Optional

from volumebot.models.network import Network

# Base58 alphabet excludes 0, O, I and l
BASE58_ADDRESS = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")
EVM_ADDRESS = re.compile(r"^0x[a-fA-F0-9]{40}$")


def classify(address: str, hint: Optional[Network] = None) -> Optional[Network]:
    """
    Decide which network an address belongs to.
    
    Args:
        address: Raw address string as typed by the user
        hint: Network currently selected in the session, if any
        
    Returns:
        The network, or None when the shape matches no supported chain
    """
    if not address:
        return None
    
    if BASE58_ADDRESS.match(address):
        return Network.SOLANA
    
    if EVM_ADDRESS.match(address):
        # EVM addresses are shared between BSC and Ethereum
        if hint is Network.BSC:
            return Network.BSC
        return Network.ETHEREUM
    
    return None
