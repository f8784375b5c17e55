"""Test suite for the DSX extractor."""

SENTINEL = "=+=+=+="


class Block(str):
    """A field value rendered as a sentinel-delimited block."""


def _field(key, value):
    if isinstance(value, Block):
        return f"{key} {SENTINEL}\n{value}\n{SENTINEL}"
    return f'{key} "{value}"'


def subrecord(**fields):
    """Helper: render a BEGIN/END DSSUBRECORD block with fields in order."""
    lines = ["BEGIN DSSUBRECORD"]
    lines.extend(_field(key, value) for key, value in fields.items())
    lines.append("END DSSUBRECORD")
    return "\n".join(lines)


def record(identifier, name, *subrecords, **fields):
    """Helper: render a BEGIN/END DSRECORD block.

    Identifier and Name come first, then the keyword fields, then any
    pre-rendered sub-records.
    """
    lines = ["BEGIN DSRECORD", _field("Identifier", identifier), _field("Name", name)]
    lines.extend(_field(key, value) for key, value in fields.items())
    lines.extend(subrecords)
    lines.append("END DSRECORD")
    return "\n".join(lines)


def dsx_job(*records, identifier="TestJob"):
    """Helper: wrap records in a DSJOB block."""
    return "\n".join(["BEGIN DSJOB", _field("Identifier", identifier), *records, "END DSJOB"])


def root_record(name="TestJob", job_type="1", description=None, stages=(), links=(), parameters=(), **fields):
    """Helper: the job-level record carrying the stage and link lists.

    ``stages`` is a sequence of (stage id, stage name) pairs and ``links`` a
    sequence of (link name, source pin id, target stage id) triples.
    """
    root_fields = {"OLEType": "CJobDefn"}
    if description is not None:
        root_fields["FullDescription"] = Block(description)
    if job_type is not None:
        root_fields["JobType"] = job_type
    if stages:
        root_fields["StageList"] = "|".join(stage_id for stage_id, _ in stages)
        root_fields["StageNames"] = "|".join(stage_name for _, stage_name in stages)
    if links:
        root_fields["LinkNames"] = "|".join(link[0] for link in links)
        root_fields["LinkSourcePinIDs"] = "|".join(link[1] for link in links)
        root_fields["TargetStageIDs"] = "|".join(link[2] for link in links)
    root_fields.update(fields)
    return record("ROOT", name, *parameters, **root_fields)


def parameter(name, param_type="1", default="", prompt=None, help_text=None):
    fields = {"Name": name, "Prompt": prompt or name, "Default": default}
    if help_text is not None:
        fields["HelpTxt"] = help_text
    fields["ParamType"] = param_type
    return subrecord(**fields)


def column(name, sql_type="12", precision="0", scale="0", nullable="1", derivation=None):
    fields = {"Name": name, "SqlType": sql_type, "Precision": precision, "Scale": scale, "Nullable": nullable}
    if derivation is not None:
        fields["Derivation"] = derivation
    return subrecord(**fields)


def stage(identifier, name, stage_type, *subrecords, **fields):
    return record(identifier, name, *subrecords, OLEType="CCustomStage", StageType=stage_type, **fields)


def output_pin(identifier, link_name, *columns, ole_type="CCustomOutput"):
    fields = {"OLEType": ole_type}
    if columns:
        fields["Columns"] = "COutputColumn"
    return record(identifier, link_name, *columns, **fields)


def input_pin(identifier, link_name, *subrecords, ole_type="CCustomInput", **fields):
    return record(identifier, link_name, *subrecords, OLEType=ole_type, **fields)


def xml_properties(context, **elements):
    """Helper: an XMLProperties sub-record with CDATA-wrapped elements."""
    body = "".join(f"<{tag}><![CDATA[{value}]]></{tag}>" for tag, value in elements.items())
    xml = (
        "<?xml version='1.0' encoding='UTF-16'?><Properties version='1.1'>"
        f"<Common><Context type='int'>{context}</Context></Common>{body}</Properties>"
    )
    return subrecord(Name="XMLProperties", Value=Block(xml))


def find_by_name(items, name):
    """Helper: first item of a section with the given name."""
    return next((item for item in items if item.name == name), None)
