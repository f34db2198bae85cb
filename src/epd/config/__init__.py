from epd.config.loader import load_processor_config, processor_config_to_dict
from epd.config.models import ProcessorConfig

__all__ = ["ProcessorConfig", "load_processor_config", "processor_config_to_dict"]
