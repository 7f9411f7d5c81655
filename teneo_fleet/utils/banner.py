# Banner - Startup Banner
# Printed once before the fleet starts

from colorama import Fore, Style, just_fix_windows_console

BANNER = r"""
  _____                       _____ _           _
 |_   _|__ _ __   ___  ___   |  ___| | ___  ___| |_
   | |/ _ \ '_ \ / _ \/ _ \  | |_  | |/ _ \/ _ \ __|
   | |  __/ | | |  __/ (_) | |  _| | |  __/  __/ |_
   |_|\___|_| |_|\___|\___/  |_|   |_|\___|\___|\__|
"""


def display_banner(stream=None):
    """Print the colored startup banner"""
    just_fix_windows_console()
    lines = [
        f"{Fore.CYAN}{Style.BRIGHT}{BANNER}{Style.RESET_ALL}",
        f"{Fore.YELLOW}  Multi-account WebSocket node keeper{Style.RESET_ALL}",
        f"{Fore.WHITE}  Press Ctrl+C to stop all connections{Style.RESET_ALL}",
        "",
    ]
    print("\n".join(lines), file=stream, flush=True)
