"""Entry point for `python -m ngo_crm`"""

from ngo_crm.cli.main import app

if __name__ == "__main__":
    app()
