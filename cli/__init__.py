"""Dimension Studio CLI"""

import click
from dotenv import load_dotenv
from .display import setup_logging
from .produce import produce_cmd
from .animate import animate_cmd
from .chat import chat_cmd
from .models import models_cmd
from .config import config_cmd

# Load .env file at CLI startup
load_dotenv()


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Show pipeline logs")
def main(verbose: bool):
    """Dimension Studio - text and image to video creative pipeline

    \b
    Quick Start:
      dimension-studio produce -t "Your story idea" --mock
      dimension-studio animate -i still.png -p "Slow pan"

    \b
    Commands:
      produce   Run analysis → characters → concept art → video
      animate   Image-to-video shortcut
      chat      Talk to the studio assistant
      models    List the engine catalogue
      config    Show configuration
    """
    setup_logging(verbose)


# Production commands
main.add_command(produce_cmd, name="produce")
main.add_command(animate_cmd, name="animate")

# Assistant and info commands
main.add_command(chat_cmd, name="chat")
main.add_command(models_cmd, name="models")
main.add_command(config_cmd, name="config")


if __name__ == "__main__":
    main()
