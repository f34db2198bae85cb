from __future__ import annotations


DEFAULT_CONFIG: dict = {
    "node_name": "processor",
    "model": {
        "name": "epd-model",
        "path": None,
        "labels_path": None,
        "confidence": 0.5,
        "mask_threshold": 0.5,
        "input_size": 224,
        "min_size": 800,
        "top_k": 1,
    },
    "session": {
        "precision_level": 1,
        "visualize": False,
        "providers": "auto",
        "strict_geometry": False,
    },
    "topics": {
        "image_input": "/processor/image_input",
        "state_input": "/processor/state_input",
        "visual_output": "/processor/output",
        "p1_output": "/processor/epd_p1_output",
        "p2_output": "/processor/epd_p2_output",
        "p3_output": "/processor/epd_p3_output",
        "queue_depth": 10,
    },
    "monitoring": {
        "json_logs": False,
        "log_level": "INFO",
        "prometheus_enabled": False,
        "prometheus_host": "0.0.0.0",
        "prometheus_port": 9109,
        "event_stdout": True,
        "event_file": None,
    },
}
