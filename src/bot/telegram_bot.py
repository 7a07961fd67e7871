"""
Tooth Time — Telegram Bot.

Telegram is the only user interface: it shows the mascot's check-in, the
quest log of upcoming doses and rinses with TAKEN/DONE buttons, and the
schedule settings. A repeating job ticks the schedule and pushes a reminder
when something is due.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.error import BadRequest
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
)

from src.config import settings
from src.core.schedule import badge, mood
from src.core.time_utils import pretty_in
from src.data.models import FIXED_TIME_TASKS, INTERVAL_MEDICATIONS
from src.ports.notification_port import NotificationPermission

if TYPE_CHECKING:
    from src.core.reminder_service import ReminderService, Snapshot

logger = logging.getLogger(__name__)

QUEST_LOG_LIMIT = 10

_MOOD_FACES = {"chill": "🙂", "proud": "😎", "ouch": "😖"}

_DISCLAIMER = "Reminders only. If swelling/fever/pus or trouble opening mouth: urgent dentist."


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


def _service(context: ContextTypes.DEFAULT_TYPE) -> ReminderService:
    return context.bot_data["service"]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_status(snap: Snapshot, permission: NotificationPermission) -> str:
    """HUD line: clock, streak, notifications, theme."""
    notifs = "ON" if permission is NotificationPermission.GRANTED else "OFF"
    theme = "NIGHT" if snap.plan.dark_mode else "DAY"
    return (
        "TOOTH TIME\n"
        f"🕒 {snap.clock}  🔥 STREAK {snap.plan.streak}  🔔 {notifs}  {theme}"
    )


def _render_next(snap: Snapshot) -> str:
    """The mascot's one-line summary of what's next."""
    plan = snap.plan
    face = _MOOD_FACES[mood(snap.schedule)]
    top = snap.top
    if top is None:
        line = "All caught up ✅"
    else:
        line = f"Next: {top.title} at {top.when} [{pretty_in(top.mins)}]"
    return f"{face} {plan.character_name}: {line}\n\n{_DISCLAIMER}"


def _render_quest_log(snap: Snapshot) -> tuple[str, InlineKeyboardMarkup | None]:
    """Quest log text plus one action button per listed item."""
    items = snap.schedule[:QUEST_LOG_LIMIT]
    if not items:
        return "QUEST LOG: nothing scheduled.", None

    lines = ["QUEST LOG: NEXT UP\n"]
    keyboard = []
    for it in items:
        lines.append(
            f"[{badge(it.mins)} {pretty_in(it.mins)}] {it.title} • {it.subtitle} • {it.when}"
        )
        if it.type == "pill":
            keyboard.append([InlineKeyboardButton(
                f"TAKEN: {it.title}", callback_data=f"taken:{it.id}",
            )])
        elif not it.done:
            keyboard.append([InlineKeyboardButton(
                f"DONE ✅: {it.title} {it.when}",
                callback_data=f"done:{it.section}:{it.done_key}",
            )])
    return "\n".join(lines), InlineKeyboardMarkup(keyboard) if keyboard else None


def _render_settings(snap: Snapshot) -> str:
    plan = snap.plan
    lines = [
        "SCHEDULE SETTINGS\n",
        f"Friend: {plan.friend_name}",
        f"Mascot: {plan.character_name}",
    ]
    for name in INTERVAL_MEDICATIONS:
        med = getattr(plan, name)
        state = "" if med.enabled else " (off)"
        lines.append(f"{name.capitalize()}: every {med.every_hours}h from {med.start}{state}")
    for name in FIXED_TIME_TASKS:
        task = getattr(plan, name)
        state = "" if task.enabled else " (off)"
        lines.append(f"{name.capitalize()}: {', '.join(task.times)}{state}")
    lines.append(
        "\nEdit with /every <med> <hours>, /starttime <med> <HH:MM>, "
        "/slot <task> <n> <HH:MM>, /friend <name>, /mascot <name>"
    )
    return "\n".join(lines)


def _intro_page(step: int, snap: Snapshot) -> tuple[str, InlineKeyboardMarkup]:
    """Onboarding: page 1 is the check-in, page 2 the quest list."""
    plan = snap.plan
    if step == 1:
        text = (
            f"{plan.character_name} CHECK-IN\n\n"
            f"Heyyy {plan.friend_name} 💗\n"
            "I'm here to guard your tooth era 🦷✨\n"
            "We keep pain away like a pro, okay? 🌸\n"
            "Ready to start?"
        )
        buttons = [
            InlineKeyboardButton("OKAY", callback_data="intro:2"),
            InlineKeyboardButton("SKIP", callback_data="intro:close"),
        ]
    else:
        text = (
            "TODAY'S QUESTS\n\n"
            "💊 Paracetamol (as set)\n"
            "💊 Ibuprofen (as set)\n"
            "🧂 Warm salt rinse (3x)\n"
            "🧴 Corsodyl (AM + PM)\n"
            "🚨 Fever / swelling / pus = urgent dentist"
        )
        buttons = [
            InlineKeyboardButton("LET'S GO", callback_data="intro:close"),
            InlineKeyboardButton("BACK", callback_data="intro:1"),
        ]
    return text, InlineKeyboardMarkup([buttons])


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _parse_choice(raw: str, choices) -> str | None:
    value = raw.strip().lower()
    return value if value in choices else None


def _parse_positive_int(raw: str) -> int | None:
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — onboarding on first run, otherwise what's next."""
    snap = _service(context).snapshot()
    if not snap.plan.intro_seen:
        text, markup = _intro_page(1, snap)
        await update.message.reply_text(text, reply_markup=markup)
        return
    await update.message.reply_text(_render_next(snap))


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "Available commands:\n"
        "/next — What's due next\n"
        "/schedule — Quest log with TAKEN/DONE buttons\n"
        "/status — Clock, streak and notification state\n"
        "/settings — Show the schedule settings\n"
        "/every <med> <hours> — Change a dosing interval\n"
        "/starttime <med> <HH:MM> — Change a medication's first dose\n"
        "/slot <task> <n> <HH:MM> — Move a rinse/corsodyl slot\n"
        "/friend <name>, /mascot <name> — Rename\n"
        "/night — Toggle night mode\n"
        "/notify, /mute — Turn reminders on or off\n"
        "/reset — Forget everything and start over\n"
        "/help — Show this message"
    )


@authorized_only
async def cmd_status(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    service = _service(context)
    await update.message.reply_text(
        _render_status(service.snapshot(), service.notification_status())
    )


@authorized_only
async def cmd_next(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(_render_next(_service(context).snapshot()))


@authorized_only
async def cmd_schedule(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /schedule — quest log of the next items."""
    text, markup = _render_quest_log(_service(context).snapshot())
    await update.message.reply_text(text, reply_markup=markup)


@authorized_only
async def cmd_settings(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(_render_settings(_service(context).snapshot()))


@authorized_only
async def cmd_every(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /every <med> <hours>."""
    args = context.args or []
    med = _parse_choice(args[0], INTERVAL_MEDICATIONS) if len(args) == 2 else None
    hours = _parse_positive_int(args[1]) if len(args) == 2 else None
    if med is None or hours is None:
        await update.message.reply_text("Usage: /every <paracetamol|ibuprofen> <hours>")
        return
    _service(context).set_every_hours(med, hours)
    await update.message.reply_text(f"✅ {med.capitalize()} every {hours}h.")


@authorized_only
async def cmd_starttime(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /starttime <med> <HH:MM>."""
    args = context.args or []
    med = _parse_choice(args[0], INTERVAL_MEDICATIONS) if len(args) == 2 else None
    if med is None:
        await update.message.reply_text("Usage: /starttime <paracetamol|ibuprofen> <HH:MM>")
        return
    try:
        _service(context).set_start_time(med, args[1])
    except ValueError:
        await update.message.reply_text("Invalid time. Use 24-hour HH:MM, e.g. 08:00.")
        return
    await update.message.reply_text(f"✅ {med.capitalize()} starts at {args[1]}.")


@authorized_only
async def cmd_slot(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /slot <task> <n> <HH:MM>."""
    args = context.args or []
    task = _parse_choice(args[0], FIXED_TIME_TASKS) if len(args) == 3 else None
    number = _parse_positive_int(args[1]) if len(args) == 3 else None
    if task is None or number is None:
        await update.message.reply_text("Usage: /slot <rinse|corsodyl> <n> <HH:MM>")
        return
    try:
        _service(context).set_slot_time(task, number - 1, args[2])
    except ValueError as exc:
        await update.message.reply_text(f"Couldn't move that slot: {exc}")
        return
    await update.message.reply_text(f"✅ {task.capitalize()} #{number} at {args[2]}.")


@authorized_only
async def cmd_friend(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    name = " ".join(context.args or []).strip()
    if not name:
        await update.message.reply_text("Usage: /friend <name>")
        return
    _service(context).set_friend_name(name)
    await update.message.reply_text(f"✅ Hi {name}!")


@authorized_only
async def cmd_mascot(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    name = " ".join(context.args or []).strip()
    if not name:
        await update.message.reply_text("Usage: /mascot <name>")
        return
    _service(context).set_character_name(name)
    await update.message.reply_text(f"✅ Your mascot is now {name}.")


@authorized_only
async def cmd_night(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    plan = _service(context).toggle_dark_mode()
    await update.message.reply_text("🌙 NIGHT mode" if plan.dark_mode else "☀ DAY mode")


@authorized_only
async def cmd_notify(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    state = await _service(context).request_notifications()
    if state is NotificationPermission.GRANTED:
        await update.message.reply_text("NOTIFS: OK ✅")
    else:
        await update.message.reply_text("Notifications aren't available: no reminder chat configured.")


@authorized_only
async def cmd_mute(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await _service(context).mute_notifications()
    await update.message.reply_text("🔕 Reminders muted. /notify turns them back on.")


@authorized_only
async def cmd_reset(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /reset — wipe the plan and re-open onboarding."""
    service = _service(context)
    service.reset_all()
    text, markup = _intro_page(1, service.snapshot())
    await update.message.reply_text(text, reply_markup=markup)


# ---------------------------------------------------------------------------
# Callback handlers
# ---------------------------------------------------------------------------


async def _redraw_quest_log(query, service: ReminderService) -> None:
    """Replace the tapped message with a fresh quest log."""
    text, markup = _render_quest_log(service.snapshot())
    try:
        await query.edit_message_text(text, reply_markup=markup)
    except BadRequest as exc:
        # Same minute, same content: Telegram rejects a no-op edit.
        if "not modified" not in str(exc).lower():
            raise
        logger.debug("Quest log unchanged, edit skipped")


@authorized_only
async def _handle_intro_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    await query.answer()
    service = _service(context)

    step = query.data.split(":", 1)[1]
    if step == "close":
        service.dismiss_intro()
        await query.edit_message_text(_render_next(service.snapshot()))
        return

    text, markup = _intro_page(int(step), service.snapshot())
    await query.edit_message_text(text, reply_markup=markup)


@authorized_only
async def _handle_taken_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    await query.answer("DONE ✅")
    service = _service(context)

    med_id = query.data.split(":", 1)[1]
    try:
        service.mark_taken(med_id)
    except ValueError as exc:
        logger.error("taken callback error: %s", exc)
        return

    await _redraw_quest_log(query, service)


@authorized_only
async def _handle_done_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    service = _service(context)

    _, section, done_key = query.data.split(":", 2)
    # Buttons outlive the day they were drawn on; only today's slots count.
    if not done_key.startswith(f"{service.today()}_"):
        await query.answer("That slot is from another day")
        await _redraw_quest_log(query, service)
        return

    await query.answer("DONE ✅")
    try:
        service.mark_done(section, done_key)
    except ValueError as exc:
        logger.error("done callback error: %s", exc)
        return

    await _redraw_quest_log(query, service)


# ---------------------------------------------------------------------------
# Schedule tick
# ---------------------------------------------------------------------------


async def _tick_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Recompute the schedule and push a reminder if something is due."""
    try:
        outcome = await _service(context).tick()
    except Exception as exc:
        logger.error("Schedule tick failed: %s", exc)
        return
    logger.debug("Tick: %s", outcome.result.value)


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_service(app: Application) -> ReminderService:
    """Wire the store, notifier and clock from settings."""
    from src.adapters.telegram_notifier import TelegramNotifier
    from src.core.reminder_service import ReminderService
    from src.data.db import KeyValueDB
    from src.data.models import default_plan
    from src.data.plan_store import PlanStore

    db = KeyValueDB()
    store = PlanStore(
        db,
        default_factory=lambda: default_plan(settings.FRIEND_NAME, settings.CHARACTER_NAME),
    )
    notifier = TelegramNotifier(app.bot, settings.notify_chat_id, db)
    tz = ZoneInfo(settings.TIMEZONE) if settings.TIMEZONE else None
    return ReminderService(store, notifier, tz=tz)


def build_app(service: ReminderService | None = None) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        service: Reminder service. Defaults to one backed by the SQLite DB
                 and a TelegramNotifier created from the bot instance.
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if service is None:
        service = build_service(app)
    app.bot_data["service"] = service

    # Commands
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("status", cmd_status))
    app.add_handler(CommandHandler("next", cmd_next))
    app.add_handler(CommandHandler("schedule", cmd_schedule))
    app.add_handler(CommandHandler("settings", cmd_settings))
    app.add_handler(CommandHandler("every", cmd_every))
    app.add_handler(CommandHandler("starttime", cmd_starttime))
    app.add_handler(CommandHandler("slot", cmd_slot))
    app.add_handler(CommandHandler("friend", cmd_friend))
    app.add_handler(CommandHandler("mascot", cmd_mascot))
    app.add_handler(CommandHandler("night", cmd_night))
    app.add_handler(CommandHandler("notify", cmd_notify))
    app.add_handler(CommandHandler("mute", cmd_mute))
    app.add_handler(CommandHandler("reset", cmd_reset))
    app.add_handler(CallbackQueryHandler(_handle_intro_callback, pattern=r"^intro:(1|2|close)$"))
    app.add_handler(CallbackQueryHandler(_handle_taken_callback, pattern=r"^taken:"))
    app.add_handler(CallbackQueryHandler(_handle_done_callback, pattern=r"^done:"))

    app.job_queue.run_repeating(
        _tick_job,
        interval=settings.TICK_SECONDS,
        first=0,
        name="schedule_tick",
    )
    logger.info("Schedule tick every %ds", settings.TICK_SECONDS)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Tooth Time bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
