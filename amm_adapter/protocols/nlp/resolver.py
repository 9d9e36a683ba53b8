"""
Natural-language intent resolver

Turns a free-text command ("swap 10 WETH for TEST") into a validated
Intent whose tokens are resolved against the token registry.
"""

import logging
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from ...types.common import TokenRegistry
from ...types.intent import Intent, IntentToken, Operation, PendingOperation, redeem_percentage, slippage_percent_to_bps
from ...errors import CompletionServiceError, InvalidInput, UnresolvedIntent
from .api import CompletionAPI

logger = logging.getLogger(__name__)

SCHEMA_NAME = "amm_intent"

SYSTEM_PROMPT = """You are an assistant that helps users interact with a Uniswap-like DeFi interface.
Parse the user request and extract the operation, tokens, and amounts.

Available operations:
- swap: Exchange one token for another
- deposit: Add liquidity to a token pair pool
- redeem: Remove liquidity from a token pair pool

Available tokens in the system:
{token_list}
- Any other token symbols the user might mention

Examples:
- "swap 10 WETH for TEST" would mean swapping 10 WETH tokens for TEST tokens
- "deposit 5 WETH and 20 TEST" would mean adding liquidity with 5 WETH and 20 TEST
- "redeem 50% of my WETH-TEST position" would mean removing 50% of liquidity from the WETH-TEST pool
- "swap 100 usdc for eth" would mean swapping 100 USDC tokens for ETH/WETH

List tokens in the order the user mentions them. Report slippage as a percentage
(0.5 means 0.5%) and only when the user states one."""


class ParsedToken(BaseModel):
    symbol: str = Field(description="The token symbol mentioned in the request")
    amount: Optional[Decimal] = Field(default=None, ge=0, description="The amount of token to use")


class ParsedIntent(BaseModel):
    """Reply schema sent to, and enforced on, the completion service"""
    operation: Literal["swap", "deposit", "redeem"] = Field(
        description="The operation to perform (swap, deposit, or redeem)"
    )
    tokens: List[ParsedToken] = Field(
        default_factory=list,
        description="Array of tokens mentioned in the request with their amounts",
    )
    slippage: Optional[Decimal] = Field(
        default=None,
        ge=0,
        lt=100,
        description="Slippage tolerance in percent if specified, default is 0.5",
    )


class IntentResolver:
    """
    Resolves free text into an Intent

    Usage:
        resolver = IntentResolver(CompletionAPI())
        intent = resolver.resolve("swap 10 WETH for TEST", registry)
        mailbox.post(intent.to_pending())
    """

    def __init__(self, api: CompletionAPI):
        self._api = api

    def parse(self, text: str, registry: TokenRegistry) -> ParsedIntent:
        """Call the completion service and validate its reply against the schema"""
        symbols = registry.symbols
        token_list = "\n".join(f"- {symbol}" for symbol in symbols) or "- WETH (Wrapped Ether)"
        content = self._api.complete_json(
            SYSTEM_PROMPT.format(token_list=token_list),
            text,
            SCHEMA_NAME,
            ParsedIntent.model_json_schema(),
        )
        try:
            return ParsedIntent.model_validate_json(content)
        except ValidationError as e:
            raise CompletionServiceError(f"Completion reply does not match schema: {e}", original_error=e) from e

    def resolve(self, text: str, registry: TokenRegistry) -> Intent:
        """
        Parse, map symbols to addresses and validate

        Raises:
            InvalidInput: empty text (the service is not called)
            CompletionServiceError: service failure or malformed reply
            UnresolvedIntent: unknown symbol, missing token or missing amount
        """
        if not text or not text.strip():
            raise InvalidInput("Request text is empty", field_name="text", value=text)

        parsed = self.parse(text.strip(), registry)
        logger.info(f"Parsed intent: {parsed.model_dump_json()}")

        operation = Operation(parsed.operation)
        tokens = [self._map_token(token, registry, operation) for token in parsed.tokens]
        intent = Intent(operation=operation, tokens=tokens, slippage=parsed.slippage)
        self.validate(intent)
        return intent

    def resolve_pending(self, text: str, registry: TokenRegistry) -> PendingOperation:
        """resolve() followed by Intent.to_pending()"""
        return self.resolve(text, registry).to_pending()

    def close(self) -> None:
        self._api.close()

    @staticmethod
    def _map_token(parsed: ParsedToken, registry: TokenRegistry, operation: Operation) -> IntentToken:
        token = registry.resolve_symbol(parsed.symbol)
        if token is None:
            raise UnresolvedIntent.unknown_token(parsed.symbol, operation.value)
        return IntentToken(symbol=token.symbol, address=token.address, amount=parsed.amount)

    @staticmethod
    def validate(intent: Intent) -> None:
        """Check the intent has everything its operation needs"""
        operation = intent.operation.value

        if len(intent.tokens) != 2:
            raise UnresolvedIntent.missing_field(
                f"two tokens (got {len(intent.tokens)})", operation
            )

        token0, token1 = intent.tokens
        for token in intent.tokens:
            if not token.address:
                raise UnresolvedIntent.unknown_token(token.symbol, operation)
        if token0.address.lower() == token1.address.lower():
            raise UnresolvedIntent.missing_field("two different tokens", operation)

        if intent.operation == Operation.SWAP:
            if not token0.amount:
                raise UnresolvedIntent.missing_field(f"amount of {token0.symbol}", operation)

        elif intent.operation == Operation.DEPOSIT:
            for token in intent.tokens:
                if not token.amount:
                    raise UnresolvedIntent.missing_field(f"amount of {token.symbol}", operation)

        else:
            stated = token0.amount if token0.amount is not None else token1.amount
            if stated is not None:
                redeem_percentage(stated)

        if intent.slippage is not None:
            slippage_percent_to_bps(intent.slippage)
