"""Interactive CLI simulator — exercise the OTP flow without HTTP or a mail provider."""

import asyncio

from otp_mailer.config import settings
from otp_mailer.dependencies import build_services
from otp_mailer.errors import OtpServiceError
from otp_mailer.mail.console import ConsoleEmailSender

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"

HELP = (
    f"{DIM}Commands:  send            request a code for the current email\n"
    f"           verify <code>   check a code\n"
    f"           sweep           evict expired codes\n"
    f"           switch          change email\n"
    f"           quit{RESET}\n"
)


async def main() -> None:
    print(f"\n{BOLD}{'=' * 52}")
    print(f"  🔐  {settings.app_name} — OTP Simulator")
    print(f"{'=' * 52}{RESET}\n")

    # ── Use the configured store, but never send real mail ─
    sender = ConsoleEmailSender()
    services = build_services(settings, sender=sender)
    await services.startup()
    print(f"{DIM}Store backend: {settings.otp_store_backend}{RESET}")
    print(HELP)

    email = input(f"{YELLOW}Email to simulate: {RESET}").strip() or "user@example.com"
    print(f"{DIM}Simulating as {email}{RESET}\n")

    while True:
        try:
            user_input = input(f"{BLUE}{BOLD}>{RESET} ").strip()
        except (KeyboardInterrupt, EOFError):
            print(f"\n{DIM}Goodbye!{RESET}")
            break

        if not user_input:
            continue

        command, _, arg = user_input.partition(" ")
        command = command.lower()

        if command == "quit":
            print(f"{DIM}Goodbye!{RESET}")
            break

        if command == "switch":
            email = input(f"{YELLOW}New email: {RESET}").strip() or email
            print(f"{DIM}Switched to {email}{RESET}\n")
            continue

        try:
            if command == "send":
                outcome = await services.delivery.send_otp(email)
                if outcome.rate_limited:
                    print(f"{YELLOW}Rate limited — previous code still valid.{RESET}\n")
                else:
                    text = sender.outbox[-1]["text"]
                    print(f"{GREEN}{BOLD}Sent:{RESET} {text}\n")
                continue

            if command == "verify":
                result = await services.manager.verify(email, arg)
                colour = GREEN if result.valid else RED
                print(f"{colour}{BOLD}{result.reason.value}{RESET}\n")
                continue
        except OtpServiceError as exc:
            print(f"{RED}{exc.message}{RESET}\n")
            continue

        if command == "sweep":
            report = await services.sweeper.sweep()
            print(f"{DIM}Removed {report.deleted} of {report.scanned} records{RESET}\n")
            continue

        print(HELP)

    await services.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
