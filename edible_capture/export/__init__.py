from edible_capture.export.label_writer import LabelWriter, format_label_line

__all__ = ["LabelWriter", "format_label_line"]
