from __future__ import annotations

import json
import platform
import sys
from pathlib import Path
from typing import Any

from epd.config import load_processor_config


def _module_version(name: str) -> str | None:
    try:
        module = __import__(name)
        return getattr(module, "__version__", "installed")
    except Exception:
        return None


def _check_onnxruntime() -> dict[str, Any]:
    try:
        import onnxruntime as ort

        providers = ort.get_available_providers()
        return {
            "ok": True,
            "version": getattr(ort, "__version__", "installed"),
            "providers": providers,
            "cuda_provider": "CUDAExecutionProvider" in providers,
            "hint": "",
        }
    except Exception:
        return {
            "ok": False,
            "version": None,
            "providers": [],
            "cuda_provider": False,
            "hint": "Install onnxruntime (CPU) or onnxruntime-gpu (CUDA hosts)",
        }


def _check_file(path_value: str | None, what: str) -> dict[str, Any]:
    if not path_value:
        return {"ok": False, "path": None, "hint": f"Set {what} in config or on the command line"}
    exists = Path(path_value).is_file()
    return {
        "ok": exists,
        "path": path_value,
        "hint": "" if exists else f"{what} not found",
    }


def _runtime_doctor(config_path: str | None, root: Path) -> dict[str, Any]:
    config = load_processor_config(root=root, config_path=config_path)
    return {
        "platform": {
            "system": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
            "python": sys.version.split()[0],
        },
        "config": config.as_log_context(),
        "onnxruntime": _check_onnxruntime(),
        "model": _check_file(config.model.path, "model.path"),
        "labels": _check_file(config.model.labels_path, "model.labels_path"),
        "modules": {
            "numpy": _module_version("numpy"),
            "opencv": _module_version("cv2"),
            "dynaconf": _module_version("dynaconf"),
            "prometheus_client": _module_version("prometheus_client"),
            "rclpy": _module_version("rclpy"),
            "epd_msgs": _module_version("epd_msgs"),
        },
    }


def _print_report(report: dict[str, Any]) -> None:
    print("epd doctor report")
    print(f"- platform: {report['platform']['system']} {report['platform']['machine']}")
    print(f"- python: {report['platform']['python']}")
    print(
        f"- precision level: {report['config']['precision_level']}"
        f" (visualize={report['config']['visualize']})"
    )

    ort_check = report["onnxruntime"]
    if ort_check["ok"]:
        print(
            f"- onnxruntime: {ort_check['version']} providers={','.join(ort_check['providers'])}"
        )
    else:
        print(f"- onnxruntime: unavailable ({ort_check['hint']})")

    for key in ("model", "labels"):
        check = report[key]
        status = "ok" if check["ok"] else "missing"
        print(f"- {key}: {status} ({check['path'] or 'unset'})")
        if check["hint"]:
            print(f"    hint: {check['hint']}")

    print("- modules:")
    for name, version in report["modules"].items():
        print(f"  - {name}: {version or 'not installed'}")


def run_doctor(args: Any, root: Path) -> int:
    report = _runtime_doctor(config_path=args.config, root=root)
    if args.json:
        print(json.dumps(report, ensure_ascii=True, indent=2))
        return 0
    _print_report(report)
    return 0
