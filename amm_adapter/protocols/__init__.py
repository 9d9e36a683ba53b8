"""
Protocol integrations

- uniswap_v2: Factory/Router/Pair contract roles, gateway and quote math
- nlp: chat-completion backed intent resolution
"""
