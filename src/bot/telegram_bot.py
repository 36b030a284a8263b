"""
DealDesk — Telegram Bot.

Telegram is the only user interface. It renders the alert list, lets the
user dismiss alerts or complete tasks straight from it, and browses quotes.

Each chat owns its dismissal ledger (kept in ``chat_data``), so dismissals
last for the bot's process lifetime or until /refresh.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Any, Callable, Coroutine

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
)

from src.adapters.telegram_notifier import TelegramNotifier
from src.config import settings
from src.core.alert_engine import Alert, AlertAction, Priority
from src.core.alert_service import AlertComputationError, AlertService, TaskCompletionError
from src.core.dismissal import DismissalLedger
from src.core.validation import copy_billing_to_shipping
from src.data.models import ADDRESS_PARTS, QUOTE_STATUSES, Deal, Quote
from src.services.activities import ActivityService
from src.services.contacts import ContactService
from src.services.deals import DealService
from src.services.quotes import QuoteService
from src.services.tasks import TaskService

logger = logging.getLogger(__name__)

_PRIORITY_ICON = {
    Priority.HIGH: "🔴",
    Priority.MEDIUM: "🟡",
    Priority.LOW: "🔵",
}

# Telegram keyboards get unwieldy past this many rows
_MAX_ALERT_BUTTONS = 10

_RETRY_TEXT = "Sorry, I couldn't load your alerts right now. Send /alerts to try again."


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores updates from unauthorized users.

    Does NOT send any response to strangers — the bot must not reveal
    its existence to unauthorized users.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Per-chat wiring
# ---------------------------------------------------------------------------


def _ledger(context: ContextTypes.DEFAULT_TYPE) -> DismissalLedger:
    ledger = context.chat_data.get("dismissals")
    if ledger is None:
        ledger = DismissalLedger()
        context.chat_data["dismissals"] = ledger
    return ledger


def _notifier(update: Update, context: ContextTypes.DEFAULT_TYPE) -> TelegramNotifier:
    return TelegramNotifier(context.bot, [update.effective_chat.id])


def _alert_service(update: Update, context: ContextTypes.DEFAULT_TYPE) -> AlertService:
    notifier = _notifier(update, context)
    return AlertService(
        tasks=TaskService(notifier=notifier),
        activities=ActivityService(notifier=notifier),
        contacts=ContactService(notifier=notifier),
        ledger=_ledger(context),
    )


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def format_alert(alert: Alert) -> str:
    """One alert as a short text block."""
    icon = _PRIORITY_ICON[alert.priority]
    lines = [f"{icon} {alert.title}", f"   {alert.message}"]
    if alert.activities:
        lines.append(f"   {len(alert.activities)} recent activit(ies)")
    lines.append(f"   id: {alert.id}")
    return "\n".join(lines)


def format_alerts(alerts: list[Alert]) -> str:
    if not alerts:
        return "🎉 No alerts — you're all caught up."
    header = f"You have {len(alerts)} alert(s):\n"
    return header + "\n\n".join(format_alert(a) for a in alerts)


def alert_keyboard(alerts: list[Alert]) -> InlineKeyboardMarkup | None:
    """Inline buttons for the actions each alert offers."""
    rows = []
    for alert in alerts[:_MAX_ALERT_BUTTONS]:
        row = []
        if AlertAction.COMPLETE in alert.actions and alert.task_id is not None:
            row.append(InlineKeyboardButton(
                f"✔ Complete #{alert.task_id}",
                callback_data=f"alert:complete:{alert.task_id}",
            ))
        if AlertAction.DISMISS in alert.actions:
            row.append(InlineKeyboardButton(
                f"✖ Dismiss {alert.id}",
                callback_data=f"alert:dismiss:{alert.id}",
            ))
        if row:
            rows.append(row)
    return InlineKeyboardMarkup(rows) if rows else None


def format_quote(quote: Quote) -> str:
    when = quote.quote_date.isoformat() if quote.quote_date else "no date"
    company = f" · {quote.company}" if quote.company else ""
    return f"• #{quote.id} {quote.name} — {quote.status or 'Draft'} ({when}){company}"


def _quote_filters(args: list[str]) -> dict[str, str]:
    """``/quotes sent`` filters by status; anything else is a name search."""
    text = " ".join(args).strip()
    if not text:
        return {}
    for status in QUOTE_STATUSES:
        if text.lower() == status.lower():
            return {"status": status}
    return {"search": text}


_QUOTE_FORM_FIELDS = {
    "name": "Name",
    "tags": "Tags",
    "company": "company_c",
    "contact": "contact_id_c",
    "deal": "deal_id_c",
    "date": "quote_date_c",
    "status": "status_c",
    "delivery": "delivery_method_c",
    "expires": "expires_on_c",
}
_QUOTE_FORM_FIELDS.update({
    f"{kind}_{part}": f"{kind}_{part}_c"
    for kind in ("billing", "shipping")
    for part in ADDRESS_PARTS
})

_QUOTE_FORM_HELP = (
    "Fields are key=value pairs separated by ';', e.g.\n"
    "name=Acme renewal; status=sent; date=2025-03-12; billing_city=Haifa; shipping=same\n"
    "Keys: " + ", ".join(_QUOTE_FORM_FIELDS) + ", shipping=same"
)


def parse_quote_form(text: str) -> tuple[dict[str, Any], bool]:
    """Parse ``key=value; key=value`` into quote table fields.

    Returns the fields and whether ``shipping=same`` asked for the billing
    address to be copied. Raises ValueError on unknown keys or statuses.
    """
    data: dict[str, Any] = {}
    same_shipping = False
    for chunk in text.split(";"):
        if not chunk.strip():
            continue
        key, sep, value = chunk.partition("=")
        key, value = key.strip().lower(), value.strip()
        if not sep:
            raise ValueError(f"Expected key=value, got {chunk.strip()!r}")
        if key == "shipping" and value.lower() == "same":
            same_shipping = True
            continue
        if key not in _QUOTE_FORM_FIELDS:
            raise ValueError(f"Unknown field: {key}")
        if key == "status":
            matches = [s for s in QUOTE_STATUSES if s.lower() == value.lower()]
            if not matches:
                raise ValueError(f"Status must be one of: {', '.join(QUOTE_STATUSES)}")
            value = matches[0]
        data[_QUOTE_FORM_FIELDS[key]] = value
    return data, same_shipping


def _address_fields(quote: Quote, kind: str) -> dict[str, str]:
    return {f"{kind}_{part}_c": value for part, value in quote.address(kind).items()}


def format_address(address: dict[str, str]) -> str:
    parts = [address[p] for p in ADDRESS_PARTS if address.get(p)]
    return ", ".join(parts) if parts else "—"


def format_quote_details(quote: Quote) -> str:
    lines = [format_quote(quote)]
    if quote.expires_on:
        lines.append(f"   expires {quote.expires_on.isoformat()}")
    if quote.delivery_method:
        lines.append(f"   delivery: {quote.delivery_method}")
    lines.append(f"   billing: {format_address(quote.address('billing'))}")
    lines.append(f"   shipping: {format_address(quote.address('shipping'))}")
    return "\n".join(lines)


def format_deal(deal: Deal) -> str:
    value = f"{deal.value:,.2f}" if deal.value is not None else "no value"
    stage = deal.stage or "no stage"
    return f"• #{deal.id} {deal.title} — {stage} ({value})"


def delete_quote_keyboard(quote_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("🗑 Delete", callback_data=f"quote:delete:{quote_id}"),
        InlineKeyboardButton("Cancel", callback_data=f"quote:cancel:{quote_id}"),
    ]])


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _reply_alerts(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    service = _alert_service(update, context)
    message = update.effective_message
    try:
        alerts = await service.get_all()
    except AlertComputationError as exc:
        logger.error("Alert computation failed: %s", exc)
        await message.reply_text(_RETRY_TEXT)
        return
    await message.reply_text(format_alerts(alerts), reply_markup=alert_keyboard(alerts))


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    name = update.effective_user.first_name or "there"
    await update.message.reply_text(
        f"Hi {name}! I keep an eye on your CRM.\n"
        "Send /alerts to see what needs attention, or /help for all commands."
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(
        "/alerts — overdue and upcoming tasks, contacts to follow up\n"
        "/dismiss <alert id> — hide an alert for this session\n"
        "/complete <task id> — mark a task as done\n"
        "/refresh — forget dismissals and reload alerts\n"
        "/quotes [status or search] — latest quotes\n"
        "/quote <id> — one quote with its addresses\n"
        "/newquote <fields> — create a quote\n"
        "/editquote <id> <fields> — change a quote\n"
        "/deletequote <id> — delete a quote (asks first)\n"
        "/deals [stage] — deals, optionally by stage"
    )


@authorized_only
async def cmd_alerts(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await _reply_alerts(update, context)


@authorized_only
async def cmd_dismiss(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not context.args:
        await update.message.reply_text("Usage: /dismiss <alert id>, e.g. /dismiss overdue-42")
        return
    alert_id = context.args[0].strip()
    await _alert_service(update, context).dismiss_alert(alert_id)
    await update.message.reply_text(f"Dismissed {alert_id}.")


@authorized_only
async def cmd_complete(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not context.args or not context.args[0].strip().isdigit():
        await update.message.reply_text("Usage: /complete <task id>, e.g. /complete 42")
        return
    task_id = int(context.args[0].strip())
    try:
        await _alert_service(update, context).complete_task(task_id)
    except TaskCompletionError:
        await update.message.reply_text(f"Couldn't complete task #{task_id}. Please try again.")
        return
    await update.message.reply_text(f"✅ Task #{task_id} marked complete.")


@authorized_only
async def cmd_refresh(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    _ledger(context).clear()
    await _reply_alerts(update, context)


@authorized_only
async def cmd_quotes(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    filters = _quote_filters(context.args or [])
    service = QuoteService(notifier=_notifier(update, context))
    result = await service.get_all(filters)
    if not result.ok:
        await update.message.reply_text("Couldn't load quotes right now.")
        return

    quotes = result.data
    if not quotes:
        if filters:
            await update.message.reply_text("No quotes match your search criteria.")
        else:
            await update.message.reply_text("No quotes yet.")
        return

    lines = [f"Latest {len(quotes)} quote(s):"] + [format_quote(q) for q in quotes]
    await update.message.reply_text("\n".join(lines))


def _quote_id_arg(context: ContextTypes.DEFAULT_TYPE) -> int | None:
    if not context.args or not context.args[0].strip().isdigit():
        return None
    return int(context.args[0].strip())


@authorized_only
async def cmd_quote(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    quote_id = _quote_id_arg(context)
    if quote_id is None:
        await update.message.reply_text("Usage: /quote <quote id>, e.g. /quote 12")
        return
    service = QuoteService(notifier=_notifier(update, context))
    quote = (await service.get_by_id(quote_id)).unwrap_or(None)
    if quote is None:
        await update.message.reply_text(f"Quote #{quote_id} not found.")
        return
    await update.message.reply_text(format_quote_details(quote))


@authorized_only
async def cmd_newquote(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    text = " ".join(context.args or [])
    if not text.strip():
        await update.message.reply_text("Usage: /newquote <fields>\n" + _QUOTE_FORM_HELP)
        return
    try:
        fields, same_shipping = parse_quote_form(text)
    except ValueError as exc:
        await update.message.reply_text(f"{exc}\n{_QUOTE_FORM_HELP}")
        return

    # New quotes start as today's drafts
    data = {"quote_date_c": date.today().isoformat(), "status_c": "Draft", **fields}
    if same_shipping:
        data = copy_billing_to_shipping(data)

    service = QuoteService(notifier=_notifier(update, context))
    result = await service.create(data)
    if not result.ok:
        await update.message.reply_text("Couldn't create the quote.")
        return
    await update.message.reply_text(format_quote_details(result.data))


@authorized_only
async def cmd_editquote(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    quote_id = _quote_id_arg(context)
    text = " ".join(context.args[1:]) if context.args else ""
    if quote_id is None or not text.strip():
        await update.message.reply_text("Usage: /editquote <quote id> <fields>\n" + _QUOTE_FORM_HELP)
        return
    try:
        fields, same_shipping = parse_quote_form(text)
    except ValueError as exc:
        await update.message.reply_text(f"{exc}\n{_QUOTE_FORM_HELP}")
        return

    service = QuoteService(notifier=_notifier(update, context))
    if same_shipping:
        current = (await service.get_by_id(quote_id)).unwrap_or(None)
        if current is None:
            await update.message.reply_text(f"Quote #{quote_id} not found.")
            return
        fields = copy_billing_to_shipping({**_address_fields(current, "billing"), **fields})

    result = await service.update(quote_id, fields)
    if not result.ok:
        await update.message.reply_text(f"Couldn't update quote #{quote_id}.")
        return
    await update.message.reply_text(format_quote_details(result.data))


@authorized_only
async def cmd_deletequote(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    quote_id = _quote_id_arg(context)
    if quote_id is None:
        await update.message.reply_text("Usage: /deletequote <quote id>, e.g. /deletequote 12")
        return
    await update.message.reply_text(
        f"Delete quote #{quote_id}? This cannot be undone.",
        reply_markup=delete_quote_keyboard(quote_id),
    )


@authorized_only
async def cmd_deals(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    stage = " ".join(context.args or []).strip()
    service = DealService(notifier=_notifier(update, context))
    result = await service.get_all({"stage": stage} if stage else {})
    if not result.ok:
        await update.message.reply_text("Couldn't load deals right now.")
        return
    if not result.data:
        await update.message.reply_text("No deals found.")
        return
    lines = [f"{len(result.data)} deal(s):"] + [format_deal(d) for d in result.data]
    await update.message.reply_text("\n".join(lines))


@authorized_only
async def _handle_alert_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE,
) -> None:
    """Handle ``alert:dismiss:<alert id>`` and ``alert:complete:<task id>`` buttons."""
    query = update.callback_query
    await query.answer()

    _, action, target = query.data.split(":", 2)
    service = _alert_service(update, context)

    if action == "dismiss":
        await service.dismiss_alert(target)
        await query.message.reply_text(f"Dismissed {target}.")
        return

    if action == "complete":
        try:
            await service.complete_task(int(target))
        except (TaskCompletionError, ValueError):
            await query.message.reply_text(f"Couldn't complete task #{target}. Please try again.")
            return
        await query.message.reply_text(f"✅ Task #{target} marked complete.")
        return

    logger.warning("Unknown alert callback action: %s", query.data)


@authorized_only
async def _handle_quote_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE,
) -> None:
    """Handle the ``quote:delete:<id>`` / ``quote:cancel:<id>`` confirmation buttons."""
    query = update.callback_query
    await query.answer()

    _, action, target = query.data.split(":", 2)
    if action == "cancel":
        await query.edit_message_text(f"Kept quote #{target}.")
        return

    service = QuoteService(notifier=_notifier(update, context))
    result = await service.delete(target)
    if not result.ok:
        await query.edit_message_text(f"Couldn't delete quote #{target}.")
        return
    await query.edit_message_text(f"Quote #{target} deleted.")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def build_app() -> Application:
    """Build the Telegram application with all handlers registered."""
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("alerts", cmd_alerts))
    app.add_handler(CommandHandler("dismiss", cmd_dismiss))
    app.add_handler(CommandHandler("complete", cmd_complete))
    app.add_handler(CommandHandler("refresh", cmd_refresh))
    app.add_handler(CommandHandler("quotes", cmd_quotes))
    app.add_handler(CommandHandler("quote", cmd_quote))
    app.add_handler(CommandHandler("newquote", cmd_newquote))
    app.add_handler(CommandHandler("editquote", cmd_editquote))
    app.add_handler(CommandHandler("deletequote", cmd_deletequote))
    app.add_handler(CommandHandler("deals", cmd_deals))
    app.add_handler(CallbackQueryHandler(_handle_alert_callback, pattern=r"^alert:(dismiss|complete):"))
    app.add_handler(CallbackQueryHandler(_handle_quote_callback, pattern=r"^quote:(delete|cancel):"))

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting DealDesk bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
