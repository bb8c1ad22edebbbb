#!/usr/bin/env python3
"""
Environment bootstrap for the calgrid API.
Writes a starter .env with the grid and server settings.
"""

import os

import pytz


def ask(prompt, default):
    print(f"{prompt} [{default}]: ", end="")
    value = input().strip()
    return value or default


def ask_timezone(default="UTC"):
    while True:
        name = ask("Calendar timezone", default)
        if name in pytz.all_timezones_set:
            return name
        print(f"⚠️  Unknown timezone '{name}', try something like Europe/Berlin or America/New_York")


def main():
    print("🚀 Setting up calgrid...\n")

    if os.path.exists('.env'):
        print("⚠️  .env file already exists. Do you want to overwrite it? (y/n): ", end="")
        response = input().lower().strip()
        if response != 'y':
            print("❌ Setup cancelled.")
            return

    timezone = ask_timezone()
    pixels_per_hour = ask("Pixels per hour in the day grid", "80")
    port = ask("Server port", "8000")

    env_content = f"""# calgrid environment variables
CALGRID_TIMEZONE={timezone}
CALGRID_PIXELS_PER_HOUR={pixels_per_hour}
CALGRID_LOG_LEVEL=INFO
CALGRID_HOST=0.0.0.0
CALGRID_PORT={port}
"""

    with open('.env', 'w') as f:
        f.write(env_content)

    print("✅ Environment setup completed!")
    print(f"🕒 Timezone: {timezone}")

    print("\n📋 Next steps:")
    print("1. Install the package: pip install -e .[test]")
    print("2. Run the application: python run.py")
    print(f"3. Open http://localhost:{port}/docs in your browser")
    print("4. Run the tests: pytest")


if __name__ == "__main__":
    main()
