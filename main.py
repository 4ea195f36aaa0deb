from etchosts.access import HostsFileReader, make_writer
from etchosts.config import init_config
from etchosts.log_config import setup_logging
from etchosts.model import HostsManager
from etchosts.ui import EtcHostsApp

if __name__ == "__main__":
    config = init_config()
    setup_logging(config.get("verbose", False), config.get("log_file"))

    # Nothing is written until an entry is toggled; the writer asks for
    # privileges at that point.
    manager = HostsManager(
        reader=HostsFileReader(config["hosts_path"]),
        writer=make_writer(config),
    )
    app = EtcHostsApp(manager)
    app.run()
