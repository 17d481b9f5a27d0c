# This file is part of ctrl_jsl.
#
# Developed for the LSST Data Management System.
# This product includes software developed by the LSST Project
# (https://www.lsst.org).
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# This software is dual licensed under the GNU General Public License and also
# under a 3-clause BSD license. Recipients may choose which of these licenses
# to use; please see the files gpl-3.0.txt and/or bsd_license.txt,
# respectively.  If you choose the GPL option then the following text applies
# (but note that there is still no warranty even if you opt for BSD instead):
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Functions to create job models for testing purposes."""

__all__ = [
    "make_batchlet",
    "make_chunk",
    "make_full_job",
    "make_linear_job",
    "make_split_job",
]

from lsst.ctrl.jsl import (
    BatchletStep,
    CheckpointConfig,
    ChunkStep,
    DecisionStep,
    ExceptionClassFilter,
    FlowStep,
    JobModel,
    JobParameter,
    JobRestartConfig,
    PartitionConfig,
    Property,
    SplitStep,
    StepRestartConfig,
    Transition,
    TransitionAction,
)


def make_batchlet(name: str, **kwargs) -> BatchletStep:
    """Create a batchlet step with a generated class reference.

    Parameters
    ----------
    name : `str`
        Display name of the step, also used as its identifier unless ``id``
        is given.
    **kwargs : `~typing.Any`
        Other fields of the step.

    Returns
    -------
    step : `lsst.ctrl.jsl.BatchletStep`
        The test step.
    """
    kwargs.setdefault("id", name)
    kwargs.setdefault("batchlet_class", f"com.example.batch.{name.capitalize()}Batchlet")
    return BatchletStep(name=name, **kwargs)


def make_chunk(name: str, **kwargs) -> ChunkStep:
    """Create a chunk step with generated reader, processor and writer
    references checkpointing every 100 items.

    Parameters
    ----------
    name : `str`
        Display name of the step, also used as its identifier unless ``id``
        is given.
    **kwargs : `~typing.Any`
        Other fields of the step.

    Returns
    -------
    step : `lsst.ctrl.jsl.ChunkStep`
        The test step.
    """
    kwargs.setdefault("id", name)
    kwargs.setdefault("reader_class", "com.example.batch.RecordReader")
    kwargs.setdefault("processor_class", "com.example.batch.RecordProcessor")
    kwargs.setdefault("writer_class", "com.example.batch.RecordWriter")
    kwargs.setdefault("checkpoint", CheckpointConfig(enabled=True, item_count=100))
    return ChunkStep(name=name, **kwargs)


def make_linear_job(batch_name: str = "linear_job") -> JobModel:
    """Create a job with a batchlet followed by a chunk step.

    Parameters
    ----------
    batch_name : `str`, optional
        Name of the job.

    Returns
    -------
    model : `lsst.ctrl.jsl.JobModel`
        The test job.
    """
    return JobModel(
        batch_name=batch_name,
        properties=(Property("inputDir", "/data/in"),),
        listeners=("com.example.batch.JobAuditListener",),
        steps=(
            make_batchlet(
                "prepare",
                transitions=(Transition("COMPLETED", TransitionAction.NEXT, to="load"),),
            ),
            make_chunk(
                "load",
                skippable_exceptions=ExceptionClassFilter(include=("java.io.IOException",)),
                transitions=(Transition("*", TransitionAction.END),),
            ),
        ),
    )


def make_split_job(batch_name: str = "split_job") -> JobModel:
    """Create a job whose flow membership is given by back-references.

    The flat step list holds a split referring to two flows by identifier
    and the members of those flows pointing at their owner, listed before
    the flows themselves.

    Parameters
    ----------
    batch_name : `str`, optional
        Name of the job.

    Returns
    -------
    model : `lsst.ctrl.jsl.JobModel`
        The test job, not normalized.
    """
    return JobModel(
        batch_name=batch_name,
        steps=(
            make_batchlet(
                "start", transitions=(Transition("COMPLETED", TransitionAction.NEXT, to="fanout"),)
            ),
            make_batchlet("extractA", id="s-a1", parent_flow_id="f-a"),
            make_chunk("loadA", id="s-a2", parent_flow_id="f-a"),
            make_batchlet("extractB", id="s-b1", parent_flow_id="f-b"),
            SplitStep(id="sp-1", name="fanout", flow_ids=("f-a", "f-b"), next_step="finish"),
            FlowStep(id="f-a", name="flowA"),
            FlowStep(id="f-b", name="flowB"),
            make_batchlet("finish"),
        ),
    )


def make_full_job(batch_name: str = "full_job") -> JobModel:
    """Create a job using every kind of element.

    Parameters
    ----------
    batch_name : `str`, optional
        Name of the job.

    Returns
    -------
    model : `lsst.ctrl.jsl.JobModel`
        The test job, already normalized.
    """
    return JobModel(
        batch_name=batch_name,
        functional_area="FN",
        frequency="DLY",
        package_name="com.example.batch",
        parameters=(
            JobParameter("asOfDate", type="Date", required=True),
            JobParameter("chunkSize", type="Long", default_value="500"),
            JobParameter("dataSource", enabled=False),
        ),
        properties=(Property("region", "EU"),),
        listeners=("com.example.batch.JobAuditListener",),
        restart=JobRestartConfig(
            restartable=True,
            step_defaults=StepRestartConfig(allow_start_if_complete=False, start_limit=3),
        ),
        steps=(
            make_batchlet(
                "init",
                properties=(Property("mode", "full"),),
                transitions=(Transition("COMPLETED", TransitionAction.NEXT, to="route"),),
            ),
            DecisionStep(
                id="route",
                name="route",
                decider_class="com.example.batch.RouteDecider",
                transitions=(
                    Transition("BULK", TransitionAction.NEXT, to="parallel"),
                    Transition("NONE", TransitionAction.END, exit_status="SKIPPED"),
                    Transition("*", TransitionAction.FAIL, exit_status="UNKNOWN_ROUTE"),
                ),
            ),
            SplitStep(
                id="parallel",
                name="parallel",
                next_step="report",
                flows=(
                    FlowStep(
                        id="accounts",
                        name="accounts",
                        steps=(
                            make_chunk(
                                "loadAccounts",
                                partition=PartitionConfig(
                                    enabled=True,
                                    partition_count=4,
                                    reducer_class="com.example.batch.AccountReducer",
                                ),
                            ),
                        ),
                    ),
                    FlowStep(
                        id="ledgers",
                        name="ledgers",
                        steps=(
                            make_chunk(
                                "loadLedgers",
                                checkpoint=CheckpointConfig(enabled=True, time_limit=30),
                                retryable_exceptions=ExceptionClassFilter(
                                    include=("java.sql.SQLException",),
                                    exclude=("java.sql.SQLSyntaxErrorException",),
                                ),
                                retry_limit=3,
                            ),
                        ),
                    ),
                ),
            ),
            make_batchlet(
                "report",
                listeners=("com.example.batch.StepTimingListener",),
                transitions=(Transition("FAILED", TransitionAction.STOP, restart="report"),),
            ),
        ),
    )
