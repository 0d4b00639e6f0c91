"""ETH Price Oracle: answers on-chain price requests with exchange prices."""
