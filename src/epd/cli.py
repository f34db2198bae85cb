from __future__ import annotations

import argparse
from pathlib import Path


def _add_processor_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to TOML/YAML/JSON config file")

    parser.add_argument("--model-name", help="Model name label for logs")
    parser.add_argument("--model-path", help="ONNX model path")
    parser.add_argument("--labels-path", help="Label file path, one class name per line")
    parser.add_argument("--confidence", type=float, help="Score threshold applied by the session")
    parser.add_argument("--mask-threshold", type=float, help="Mask threshold used when rendering P3")
    parser.add_argument("--top-k", type=int, help="Maximum labels returned at precision level 1")

    parser.add_argument(
        "--precision-level",
        type=int,
        choices=[1, 2, 3],
        help="1 = classification, 2 = detection, 3 = detection + segmentation",
    )
    parser.add_argument(
        "--visualize",
        action="store_true",
        help="Publish rendered frames instead of structured output (levels 2 and 3)",
    )
    parser.add_argument(
        "--providers",
        choices=["auto", "cuda", "cpu"],
        help="ONNX Runtime execution provider preference",
    )
    parser.add_argument(
        "--strict-geometry",
        action="store_true",
        help="Reject frames when either dimension differs from the first frame",
    )

    parser.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level")
    parser.add_argument("--prometheus", action="store_true", help="Enable Prometheus metrics endpoint")
    parser.add_argument("--prometheus-port", type=int, help="Prometheus bind port")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="epd",
        description="Perception processor bridging ROS 2 camera topics to ONNX Runtime",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run the ROS 2 processor node")
    _add_processor_args(run)
    run.add_argument(
        "--ros-args",
        nargs=argparse.REMAINDER,
        default=None,
        help="Arguments forwarded to rclpy.init",
    )

    infer = subparsers.add_parser("infer", help="Run the processor on an image file without ROS")
    _add_processor_args(infer)
    infer.add_argument("--image", required=True, help="Input image path")
    infer.add_argument("--repeat", type=int, default=1, help="Number of times to feed the image")
    infer.add_argument("--save-visual", help="Write the rendered frame here (visualize mode)")
    infer.add_argument("--event-file", help="Append published messages as JSON lines")
    infer.add_argument("--no-event-stdout", action="store_true", help="Do not print published messages")

    doctor = subparsers.add_parser("doctor", help="Probe runtime dependencies and model files")
    doctor.add_argument("--config", help="Optional config file to evaluate")
    doctor.add_argument("--json", action="store_true", help="Emit JSON report")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    root = Path.cwd()

    if args.command == "run":
        from epd.commands.run import run_node

        return run_node(args, root)
    if args.command == "infer":
        from epd.commands.infer import run_infer

        return run_infer(args, root)
    if args.command == "doctor":
        from epd.commands.doctor import run_doctor

        return run_doctor(args, root)

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
