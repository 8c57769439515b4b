"""CLI entry point."""

from __future__ import annotations

import argparse
from datetime import datetime
import json
import os
import time

from .config import DEFAULT_CONFIG_PATH, Config, load_config, save_config
from .controller import AnalysisController, StateSnapshot
from .engine import GeminiEngine
from .errors import SourceError
from .logging_utils import setup_logging
from .models import AppState
from .recorder import MicrophoneRecorder, list_input_devices
from .renderer import average_engagement, render_report


def _format_time(seconds: int) -> str:
    mins, secs = divmod(seconds, 60)
    return f"{mins}:{secs:02d}"


def _build_controller(cfg: Config) -> AnalysisController:
    return AnalysisController(
        GeminiEngine.from_config(cfg), max_upload_bytes=cfg.uploads.max_bytes
    )


def _finish(snapshot: StateSnapshot, args: argparse.Namespace) -> int:
    if snapshot.state is not AppState.COMPLETE or snapshot.result is None:
        print(f"Analysis failed: {snapshot.error_message}")
        print(f"Details ({snapshot.error_kind}): {snapshot.error_detail}")
        return 1

    result = snapshot.result
    print(f"Summary: {result.summary}")
    print(f"Transcript segments: {len(result.transcript)}")
    average = average_engagement(result.sentiment_graph)
    if average is not None:
        print(f"Average engagement: {average:.0f}")
    for item in result.coaching.strengths:
        print(f"  + {item}")
    for item in result.coaching.missed_opportunities:
        print(f"  - {item}")

    if args.out:
        with open(args.out, "w", encoding="utf-8") as handle:
            json.dump(result.to_document(), handle, indent=2)
        print(f"Wrote {args.out}")
    if args.report:
        report = render_report(
            result,
            display_name=snapshot.display_name or "",
            date=datetime.now().strftime("%Y-%m-%d"),
        )
        with open(args.report, "w", encoding="utf-8") as handle:
            handle.write(report)
        print(f"Report saved: {args.report}")
    return 0


def _add_output_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Config.")
    cmd.add_argument("--out", help="Write the analysis JSON here.")
    cmd.add_argument("--report", help="Write a Markdown report here.")


def _wait_for_enter(prompt: str) -> None:
    try:
        input(prompt)
    except (KeyboardInterrupt, EOFError):
        pass


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="salescoach")
    sub = parser.add_subparsers(dest="command")

    devices_cmd = sub.add_parser("devices")
    devices_cmd.add_argument("--match", help="Filter device names by substring.")

    analyze_cmd = sub.add_parser("analyze")
    analyze_cmd.add_argument("audio_path", help="Path to audio file.")
    analyze_cmd.add_argument("--type", help="Override the detected audio MIME type.")
    _add_output_args(analyze_cmd)

    record_cmd = sub.add_parser("record")
    record_cmd.add_argument(
        "--duration", type=int, help="Seconds. Omit to stop with Enter."
    )
    record_cmd.add_argument("--device", help="Preferred device name substring.")
    record_cmd.add_argument("--rate", type=int, help="Sample rate.")
    record_cmd.add_argument("--channels", type=int, help="Mic channels.")
    record_cmd.add_argument(
        "--preview", action="store_true", help="Play the recording before analysis."
    )
    _add_output_args(record_cmd)

    config_cmd = sub.add_parser("config")
    config_cmd.add_argument("--path", default=DEFAULT_CONFIG_PATH, help="Config path.")
    config_cmd.add_argument("--force", action="store_true", help="Overwrite.")

    args = parser.parse_args(argv)
    if args.command == "devices":
        try:
            devices = list_input_devices()
        except RuntimeError as exc:
            print(str(exc))
            return 1
        if args.match:
            devices = [
                d for d in devices if args.match.lower() in d.get("name", "").lower()
            ]
        for device in devices:
            name = device.get("name", "Unknown")
            index = device.get("index", "?")
            channels = device.get("max_input_channels", 0)
            print(f"[{index}] {name} (inputs: {channels})")
        return 0

    if args.command == "config":
        if os.path.exists(args.path) and not args.force:
            print(f"{args.path} already exists. Use --force to overwrite.")
            return 1
        save_config(args.path, Config())
        print(f"Wrote {args.path}")
        return 0

    if args.command == "analyze":
        cfg = load_config(args.config)
        _logger, log_path = setup_logging(cfg.log_dir)
        controller = _build_controller(cfg)
        print(f"Analyzing {args.audio_path} ... this usually takes 10-20 seconds.")
        try:
            snapshot = controller.select_path(args.audio_path, declared_type=args.type)
        except SourceError as exc:
            print(str(exc))
            return 1
        code = _finish(snapshot, args)
        if code:
            print(f"Log: {log_path}")
        return code

    if args.command == "record":
        cfg = load_config(args.config)
        _logger, log_path = setup_logging(cfg.log_dir)
        recorder = MicrophoneRecorder(
            sample_rate_hz=args.rate or cfg.recorder.sample_rate_hz,
            channels=args.channels or cfg.recorder.channels,
            device_name=args.device or cfg.recorder.device_name,
        )
        with recorder:
            try:
                recorder.start()
            except SourceError as exc:
                print(str(exc))
                return 1
            if args.duration:
                print(f"Recording for {args.duration}s ...")
                try:
                    time.sleep(args.duration)
                except KeyboardInterrupt:
                    pass
            else:
                _wait_for_enter("Recording in progress... press Enter to stop.")
            recorder.stop()
            print(f"Recording complete ({_format_time(recorder.elapsed_seconds)})")

            if args.preview:
                recorder.play()
                _wait_for_enter("Previewing... press Enter to analyze.")
                recorder.pause()

            controller = _build_controller(cfg)
            print("Analyzing recording ... this usually takes 10-20 seconds.")
            try:
                snapshot = controller.submit_recording(recorder)
            except SourceError as exc:
                print(str(exc))
                return 1
        code = _finish(snapshot, args)
        if code:
            print(f"Log: {log_path}")
        return code

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
