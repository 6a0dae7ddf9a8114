"""
Application shell and configuration for brkgalab.

Provides a singleton App with logging, output folders, config (command line
and ./*.conf files), publish/subscribe for events (e.g. generation_ended),
and service registration.
"""

import logging
import sys
import os
from datetime import datetime
import configargparse

app = None

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARN,
    "error": logging.ERROR,
}


def init_app(name=None, create_output_folder=True):
    """Create, set and return the global App. Call once at startup."""
    global app
    app = App(name=name, create_output_folder=create_output_folder)
    return app


def get_app():
    """Return the global App; creates one without output folder if not yet created."""
    if app is None:
        init_app(None, create_output_folder=False)
    return app


def get_config():
    """Return the configuration dict from the global App."""
    return get_app().get_config()


class App:
    """
    Central app: logging, output directory, config, pub/sub, and service registry.
    """

    def __init__(self, name=None, create_output_folder=True):

        self.subscribers = {}
        self.output_folder = None
        self.services = {}
        self.config = None

        if create_output_folder:
            if name is None:
                name = os.path.splitext(os.path.basename(sys.argv[0]))[0]
            outfolder = self.get_output_folder(suffix=name)
            self.init_logging(filename=os.path.join(outfolder, "log.txt"))

            self.start_message()
            logging.info(f"output folder: {outfolder}")

            conf = self.get_config()
            logging.info("Configuration:\n" + "\n".join(f"{key}: {conf[key]}" for key in sorted(conf)))

    def register_service(self, service):
        """Register a service instance; retrieve later with get_service(type(service))."""
        self.services[type(service)] = service

    def get_service(self, service_type):
        return self.services.get(service_type)

    def get_config(self, args=None):
        """
        Load and cache config from the command line (or args) and ./*.conf.

        Unknown arguments are ignored so the config can be read from scripts
        with their own command line.
        """
        if self.config is None:
            p = configargparse.ArgParser(default_config_files=['./*.conf'], allow_abbrev=False)

            p.add('-log_level', type=str, choices=list(LOG_LEVELS), default="info", help='log level')
            p.add('-output_dir', type=str, default="evolutions", help='parent folder of the run output folders')
            p.add('-max_iter', type=int, default=None, help='number of generations')
            p.add('-early_stop', type=int, default=None, help='stop after this many generations without improvement (0 = never)')
            p.add('-pop_size', type=int, default=None, help='population size')
            p.add('-elite_rate', type=float, default=None, help='fraction of the population kept as elite')
            p.add('-mutant_rate', type=float, default=None, help='fraction of the population replaced by mutants')
            p.add('-elitism_prob', type=float, default=None, help='probability to inherit a gene from the elite parent')
            p.add('-seed', type=int, default=None, help='random seed')

            options, _ = p.parse_known_args(args)
            self.config = dict(vars(options))

        return self.config

    def publish(self, topic, args=None):
        """Notify all subscribers of topic (optional args passed to callbacks)."""
        logging.debug(f"publish topic={topic}")
        if topic not in self.subscribers:
            return
        for s in self.subscribers[topic]:
            if args is None:
                s()
            elif type(args) == tuple:
                s(*args)
            else:
                s(args)

    def subscribe(self, topic, fct):
        """Register fct to be called when topic is published."""
        if topic not in self.subscribers:
            self.subscribers[topic] = []
        self.subscribers[topic].append(fct)

    def init_logging(self, filename="./log.txt", log_to_file=True):
        """
        Configure the root logger with a console handler and optionally a file handler.

        The level comes from the log_level config option. Handlers installed by an
        earlier App are replaced, so calling init_app() again does not duplicate output.
        """
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] {%(filename)s:%(lineno)d} %(message)s")
        root_logger = logging.getLogger()

        for handler in list(root_logger.handlers):
            if getattr(handler, "brkgalab", False):
                root_logger.removeHandler(handler)
                handler.close()

        handlers = [logging.StreamHandler()]
        if log_to_file:
            handlers.append(logging.FileHandler(filename))
        for handler in handlers:
            handler.brkgalab = True
            handler.setFormatter(formatter)
            root_logger.addHandler(handler)

        root_logger.setLevel(LOG_LEVELS[self.get_config()["log_level"]])

    def start_message(self):
        """Log ASCII banner and command line."""
        msg = r'''
 ____  ____  _  ______    _      _          _
| __ )|  _ \| |/ / ___|  / \    | |    __ _| |__
|  _ \| |_) | ' / |  _  / _ \   | |   / _` | '_ \
| |_) |  _ <| . \ |_| |/ ___ \  | |__| (_| | |_) |
|____/|_| \_\_|\_\____/_/   \_\ |_____\__,_|_.__/
'''
        msg += "Starting " + " ".join(sys.argv)
        logging.info(msg)

    def get_output_folder(self, suffix=""):
        """Create and return a timestamped output directory under output_dir."""

        if self.output_folder is None:

            folder_name = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
            if len(suffix) > 0:
                folder_name += "_" + suffix

            self.output_folder = os.path.join(self.get_config()["output_dir"], folder_name)
            os.makedirs(self.output_folder, exist_ok=True)

        return self.output_folder
