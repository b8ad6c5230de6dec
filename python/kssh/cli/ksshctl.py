import sys
import subprocess

# ksshctl <subcommand> [args...] runs `python -m kssh.cli.<module> <subcommand> ...`
SUBCOMMANDS = {
    "deploy": "deploy",
    "render": "deploy",
    "status": "deploy",
}


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] not in SUBCOMMANDS:
        print(f"Usage: ksshctl {{{','.join(SUBCOMMANDS)}}} [args...]")
        sys.exit(1)

    subcommand = sys.argv[1]
    cmd = [sys.executable, "-m", f"kssh.cli.{SUBCOMMANDS[subcommand]}"] + sys.argv[1:]
    sys.exit(subprocess.call(cmd))


if __name__ == "__main__":
    main()
