import argparse
import json

from app.core.config import get_settings
from app.core.storage import build_storage
from app.services.business_hours_service import AvailabilityConfig, default_schedule
from app.utils.time_utils import format_24_to_12


def _print_schedule(schedule):
    for day, hours in schedule.days_open.items():
        if hours.open:
            print(f"{day:<10} {format_24_to_12(hours.start)} - {format_24_to_12(hours.end)}")
        else:
            print(f"{day:<10} closed")
    print(f"days off: {schedule.working_hours.days_off}")


def main():
    parser = argparse.ArgumentParser(description="Inspect or change the stored business hours")
    sub = parser.add_subparsers(dest="command", required=True)
    show = sub.add_parser("show", help="Print the stored schedule")
    show.add_argument("--json", action="store_true", help="Print the raw stored JSON")
    sub.add_parser("reset", help="Overwrite the stored schedule with the defaults")
    window = sub.add_parser("set-window", help="Set the opening and closing time of every day")
    window.add_argument("start")
    window.add_argument("end")
    toggle = sub.add_parser("toggle", help="Open or close one weekday")
    toggle.add_argument("day")
    args = parser.parse_args()

    settings = get_settings()
    config = AvailabilityConfig(build_storage(settings), settings=settings)
    config.load()

    if args.command == "show":
        if args.json:
            print(json.dumps(json.loads(config.schedule.to_json()), indent=2))
        else:
            _print_schedule(config.schedule)
        return
    if args.command == "reset":
        schedule = config.save(default_schedule(settings))
    elif args.command == "set-window":
        config.set_window(args.start, args.end)
        schedule = config.save()
    else:
        config.toggle_day(args.day)
        schedule = config.save()
    _print_schedule(schedule)


if __name__ == "__main__":
    main()
