import csv
import io

HEADER = [
    "Degree1", "Degree2", "Programme", "Faculty", "FullTime", "PartTime", "Evening",
    "CSECPasses", "CSECMandatory", "CSECAny1of", "CSECAny2of", "CSECAny3of", "CSECAny4of", "CSECAny5of",
    "CAPEPasses", "CAPEMandatory", "CAPEAny1of", "CAPEAny2of", "CAPEAny3of", "CAPEAny4of", "CAPEAny5of",
    "AlternativeQualifications", "OtherRequirements", "Description",
]

COMPUTER_SCIENCE = [
    "BSc", "", "Computer Science", "Science", "1", "0", "0", "5", "English, Mathematics",
    "", "", "", "", "", "2", "", "", "", "", "", "", "", "", "",
]


def make_row(**overrides):
    """A valid 24-cell row; keyword overrides by header name."""
    row = list(COMPUTER_SCIENCE)
    for key, value in overrides.items():
        row[HEADER.index(key)] = value
    return row


def to_csv(*rows, header=True, trailing_newline=True):
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    if header:
        w.writerow(HEADER)
    for row in rows:
        w.writerow(row)
    text = buf.getvalue()
    return text if trailing_newline else text.rstrip("\n")
