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

"""Unit tests for construct.py."""

import os
import unittest

from lsst.ctrl.jsl import (
    BatchletStep,
    ChunkStep,
    DecisionStep,
    FlowStep,
    JslConfig,
    ModelError,
    SplitStep,
    TransitionAction,
    construct_job_model,
    construct_step,
    normalize_job,
)

TESTDIR = os.path.abspath(os.path.dirname(__file__))


class TestConstructJobModel(unittest.TestCase):
    """Tests for building a job model from a job description file."""

    def setUp(self):
        self.config = JslConfig(os.path.join(TESTDIR, "data/job_config.yaml"))
        self.model = construct_job_model(self.config)

    def testJobAttributes(self):
        self.assertEqual(self.model.batch_name, "ledger_load")
        self.assertEqual(self.model.functional_area, "FN")
        self.assertEqual(self.model.frequency, "DLY")
        self.assertEqual(self.model.package_name, "com.example.ledger")
        self.assertEqual(self.model.listeners, ("com.example.ledger.JobAuditListener",))
        self.assertEqual([(p.key, p.value) for p in self.model.properties], [("inputDir", "/data/ledger/in")])

    def testParameters(self):
        names = [param.name for param in self.model.parameters]
        self.assertEqual(names, ["asOfDate", "chunkSize", "region"])
        as_of_date, chunk_size, region = self.model.parameters
        self.assertTrue(as_of_date.required)
        self.assertEqual(as_of_date.type, "Date")
        self.assertIsNone(as_of_date.default_value)
        self.assertEqual(chunk_size.default_value, "250")
        self.assertEqual(region.default_value, "EU")

    def testRestart(self):
        self.assertTrue(self.model.restart.restartable)
        self.assertEqual(self.model.restart.step_defaults.start_limit, 2)
        self.assertFalse(self.model.restart.step_defaults.allow_start_if_complete)

    def testStepTypes(self):
        self.assertEqual(
            [type(step) for step in self.model.steps], [BatchletStep, ChunkStep, SplitStep, DecisionStep]
        )
        self.assertEqual(
            [step.id for step in self.model.steps], ["step-1", "step-2", "split-1", "decision-1"]
        )

    def testChunk(self):
        load = self.model.steps[1]
        self.assertEqual(load.name, "load")
        self.assertEqual(load.processor_class, "com.example.ledger.LedgerProcessor")
        self.assertTrue(load.checkpoint.enabled)
        self.assertEqual(load.checkpoint.item_count, 1000)
        self.assertEqual(load.skippable_exceptions.include, ("java.io.IOException",))
        self.assertEqual(load.skip_limit, 10)
        self.assertFalse(load.partition.enabled)

    def testSplitFlows(self):
        split = self.model.steps[2]
        self.assertEqual(split.next_step, "archive")
        self.assertEqual([flow.name for flow in split.flows], ["reconcile", "notify"])
        self.assertTrue(all(isinstance(flow, FlowStep) for flow in split.flows))
        reconcile = split.flows[0].steps[0]
        self.assertIsInstance(reconcile, ChunkStep)
        # addProcessor: false drops the configured processor.
        self.assertIsNone(reconcile.processor_class)
        self.assertTrue(reconcile.partition.enabled)
        self.assertEqual(reconcile.partition.mapper_class, "com.example.ledger.AccountMapper")
        self.assertEqual(reconcile.checkpoint.time_limit, 60)

    def testTransitions(self):
        decision = self.model.steps[3]
        self.assertEqual(decision.decider_class, "com.example.ledger.ArchiveDecider")
        actions = [t.action for t in decision.transitions]
        self.assertEqual(actions, [TransitionAction.END, TransitionAction.STOP])
        self.assertEqual(decision.transitions[0].on, "ARCHIVE")
        self.assertEqual(decision.transitions[1].restart, "prepare")

    def testNormalizes(self):
        normalized = normalize_job(self.model)
        self.assertEqual(len(normalized.steps), 4)

    def testMissingBatchName(self):
        with self.assertRaises(KeyError):
            construct_job_model(JslConfig({"stepItems": []}))


class TestConstructFlatFlows(unittest.TestCase):
    """Tests for flows whose members refer back to them."""

    def testNormalize(self):
        config = JslConfig(os.path.join(TESTDIR, "data/flat_flow_config.yaml"))
        model = construct_job_model(config)
        self.assertEqual(len(model.steps), 3)
        self.assertEqual(model.steps[0].parent_flow_id, "f-1")

        normalized = normalize_job(model)
        self.assertEqual([step.name for step in normalized.steps], ["extraction", "publish"])
        flow = normalized.steps[0]
        self.assertEqual(flow.next_step, "publish")
        self.assertEqual([step.name for step in flow.steps], ["extract"])


class TestConstructStep(unittest.TestCase):
    """Tests for building single steps."""

    def testUnknownType(self):
        config = JslConfig(os.path.join(TESTDIR, "data/bad_step_type.yaml"))
        with self.assertRaisesRegex(ModelError, "unknown type 'Z'"):
            construct_job_model(config)

    def testMissingType(self):
        with self.assertRaises(ModelError):
            construct_step({"stepName": "orphan"})

    def testIdFallsBackToName(self):
        step = construct_step({"type": "a", "stepName": "cleanup", "batchletClass": "com.example.Cleanup"})
        self.assertIsInstance(step, BatchletStep)
        self.assertEqual(step.id, "cleanup")

    def testPartitionerClass(self):
        step = construct_step(
            {
                "type": "C",
                "stepName": "spread",
                "readerClass": "com.example.Reader",
                "writerClass": "com.example.Writer",
                "partitionerClass": "com.example.Mapper",
            }
        )
        self.assertTrue(step.partition.enabled)
        self.assertEqual(step.partition.mapper_class, "com.example.Mapper")

    def testFlowIds(self):
        step = construct_step({"type": "SPLIT", "stepName": "fan", "flowIds": ["f-1", "f-2"]})
        self.assertEqual(step.flow_ids, ("f-1", "f-2"))
        self.assertEqual(step.flows, ())

    def testBooleanProperty(self):
        step = construct_step(
            {
                "type": "A",
                "stepName": "flagged",
                "stepProperties": [{"name": "dryRun", "value": True}],
            }
        )
        self.assertEqual(step.properties[0].key, "dryRun")
        self.assertEqual(step.properties[0].value, "true")

    def testBadTransitionAction(self):
        with self.assertRaisesRegex(ModelError, "jump"):
            construct_step(
                {"type": "A", "stepName": "s", "transitions": [{"on": "*", "action": "jump", "to": "x"}]}
            )

    def testBadInteger(self):
        with self.assertRaisesRegex(ModelError, "skipLimit"):
            construct_step({"type": "B", "stepName": "s", "skipLimit": "many"})

    def testBadBoolean(self):
        with self.assertRaisesRegex(ModelError, "boolean for 'enabled'"):
            construct_step(
                {
                    "type": "B",
                    "stepName": "s",
                    "readerClass": "com.example.Reader",
                    "writerClass": "com.example.Writer",
                    "checkpointConfig": {"enabled": "maybe"},
                }
            )

    def testListenerWithoutName(self):
        with self.assertRaisesRegex(ModelError, "Listener without a class name"):
            construct_step({"type": "A", "stepName": "s", "listeners": [{"listenerType": "step"}]})

    def testEmptyListenerName(self):
        with self.assertRaisesRegex(ModelError, "Listener without a class name"):
            construct_step({"type": "A", "stepName": "s", "listeners": [""]})

    def testParameterList(self):
        config = JslConfig(
            {
                "batchName": "params",
                "jobParameters": [{"name": "runId", "required": "yes"}],
                "stepItems": [{"type": "A", "stepName": "only"}],
            }
        )
        model = construct_job_model(config)
        self.assertEqual(model.parameters[0].name, "runId")
        self.assertTrue(model.parameters[0].required)


if __name__ == "__main__":
    unittest.main()
