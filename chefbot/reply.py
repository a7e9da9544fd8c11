# chefbot/reply.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI

from .config import Settings
from .ordering.domain import MenuItem

logger = logging.getLogger(__name__)

SYSTEM = """Você é o Chef Bot, assistente virtual do restaurante {restaurant_name}.

PERSONALIDADE:
- Amigável, prestativo e eficiente
- Linguagem brasileira casual mas profissional
- Sugira bebidas e sobremesas de forma natural

REGRAS:
- Nunca invente itens: use apenas o cardápio abaixo.
- O pedido atual e o total já foram calculados pelo sistema; não recalcule.
- Se faltar mesa ou número de pessoas, pergunte.
- Pagamento: PIX (chave {pix_key}) ou chamar o garçom.

RESTAURANTE: {restaurant_name} | {restaurant_phone} | {restaurant_address}

CARDÁPIO:
{menu_text}
"""

TURN = """ETAPA: {stage}
MESA: {table_context}
{order_summary}
AÇÕES PENDENTES: {due_actions}
SUGESTÕES: {suggestions}

Cliente: {message}"""


def format_menu(items: Sequence[MenuItem], currency_symbol: str = "R$") -> str:
    if not items:
        return "Cardápio temporariamente indisponível."

    by_cat: Dict[str, List[MenuItem]] = {}
    for it in items:
        by_cat.setdefault(it.category or "Outros", []).append(it)

    lines: List[str] = []
    for cat, cat_items in by_cat.items():
        lines.append(f"{cat.upper()}:")
        for it in cat_items:
            lines.append(f"• {it.name} - {currency_symbol} {it.price:.2f}")
    return "\n".join(lines)


def fallback_reply(context: Dict[str, Any], restaurant_name: str = "Nosso Restaurante", pix_key: str = "") -> str:
    """Deterministic reply used when the LLM is off or fails."""
    actions = set(context.get("due_actions") or [])
    summary = context.get("order_summary") or ""

    if context.get("order_error"):
        return "Não consegui registrar seu pedido agora. Pode confirmar novamente?"
    if "order_closed" in actions:
        return "Seu pedido já foi finalizado. Obrigado pela visita!"
    if "request_items" in actions:
        return "Seu pedido ainda está vazio. O que você gostaria de pedir?"
    if "suggest_similar_items" in actions:
        names = [s.get("name") for s in context.get("suggestions") or [] if s.get("name")]
        if names:
            return "Não encontrei esse item no cardápio. Você quis dizer: " + ", ".join(names) + "?"
        return "Não consegui identificar itens do cardápio. Pode ser mais específico?"
    if "persist_order" in actions or "request_payment_method" in actions:
        return f"✅ Pedido confirmado!\n\n{summary}\n\nComo prefere pagar: PIX ou chamar o garçom?"
    if "present_payment_options" in actions:
        pix = f" (chave {pix_key})" if pix_key else ""
        return f"Formas de pagamento: PIX{pix} ou chamar o garçom para dinheiro/cartão."
    if "request_confirmation" in actions:
        return f"{summary}\n\nConfirma o pedido?"
    if context.get("extracted_items"):
        return f"Adicionado ✅\n\n{summary}\n\nMais alguma coisa ou posso confirmar?"
    if "show_menu" in actions:
        return f"Perfeito! {context.get('table_context')}. Quer ver o cardápio ou já sabe o que pedir?"
    if context.get("stage") == "greeting":
        return f"Olá! Bem-vindo ao {restaurant_name}. Qual o número da sua mesa e quantas pessoas?"
    return "Como posso ajudar? Você pode pedir itens do cardápio pelo nome."


class ReplyGenerator:
    """
    Opaque text generator: gets the order/table context the engine built
    and returns prose. Silent fallback on any error.
    """

    def __init__(self, settings: Settings, client: Optional[Any] = None) -> None:
        self.settings = settings
        self._client = client

    @property
    def client(self) -> Optional[Any]:
        if self._client is None and self.settings.llm_available:
            self._client = AsyncOpenAI(api_key=self.settings.openai_api_key)
        return self._client

    def _fallback(self, context: Dict[str, Any]) -> str:
        return fallback_reply(context, self.settings.restaurant_name, self.settings.pix_key)

    def build_input(
        self,
        message: str,
        context: Dict[str, Any],
        transcript: Sequence[Dict[str, str]],
        menu_items: Sequence[MenuItem],
    ) -> List[Dict[str, str]]:
        s = self.settings
        system = SYSTEM.format(
            restaurant_name=s.restaurant_name,
            restaurant_phone=s.restaurant_phone,
            restaurant_address=s.restaurant_address,
            pix_key=s.pix_key,
            menu_text=format_menu(menu_items, context.get("currency_symbol") or "R$"),
        )
        turn = TURN.format(
            stage=context.get("stage"),
            table_context=context.get("table_context"),
            order_summary=context.get("order_summary"),
            due_actions=", ".join(context.get("due_actions") or []) or "nenhuma",
            suggestions=", ".join(x.get("name", "") for x in context.get("suggestions") or []) or "nenhuma",
            message=message,
        )
        # the last entry is the current user message, sent below as `turn`
        history = [m for m in list(transcript)[:-1] if m.get("content")]
        return [{"role": "system", "content": system}, *history, {"role": "user", "content": turn}]

    async def generate(
        self,
        message: str,
        context: Dict[str, Any],
        transcript: Sequence[Dict[str, str]] = (),
        menu_items: Sequence[MenuItem] = (),
    ) -> str:
        client = self.client
        if client is None:
            return self._fallback(context)

        try:
            resp = await client.responses.create(
                model=self.settings.openai_model,
                input=self.build_input(message, context, transcript, menu_items),
            )
            text = (resp.output_text or "").strip()
            return text or self._fallback(context)
        except Exception as e:
            logger.warning("LLM reply failed, using fallback: %s", e)
            return self._fallback(context)
