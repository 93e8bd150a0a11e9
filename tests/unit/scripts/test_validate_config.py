import json
from typing import Any, Dict

import pytest
from moto import mock_aws

from tests.fixtures.config_builders import build_full_config, build_pipeline_config


pytestmark = [pytest.mark.unit]


TARGET = "scripts/validate/validate_config.py"


def _write(tmp_path, config: Dict[str, Any]) -> str:
    path = tmp_path / "pipeline.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return str(path)


def test_valid_config_prints_outputs(load_module, tmp_path, capsys) -> None:
    """
    Given: 유효한 설정 파일과 명시적 계정/리전
    When: main 실행
    Then: 종료 코드 0, 출력 맵 JSON 출력
    """
    main = load_module(TARGET)["main"]
    path = _write(tmp_path, build_pipeline_config(enable_dlq=False))

    code = main(["--config", path, "--account-id", "123456789012", "--region", "us-east-1"])

    assert code == 0
    outputs = json.loads(capsys.readouterr().out)
    assert outputs["queue_name"] == "test-pipeline-queue"
    assert outputs["dlq_name"] is None


def test_invalid_config_lists_every_error(load_module, tmp_path, capsys) -> None:
    """
    Given: 여러 오류가 있는 설정 파일
    When: main 실행
    Then: 종료 코드 1, 모든 필드 오류가 stderr에 출력
    """
    main = load_module(TARGET)["main"]
    path = _write(tmp_path, build_pipeline_config(create_lambda=True, lambda_timeout=200, batch_size=0))

    code = main(["--config", path, "--account-id", "123456789012", "--region", "us-east-1"])

    assert code == 1
    err = capsys.readouterr().err
    assert "3 error(s)" in err
    assert "  - lambda_code: is required when create_lambda is true" in err
    assert "  - lambda_timeout:" in err
    assert "  - batch_size:" in err


def test_graph_format(load_module, tmp_path, capsys) -> None:
    main = load_module(TARGET)["main"]
    path = _write(tmp_path, build_full_config())

    code = main(["-c", path, "--account-id", "123456789012", "--region", "us-east-1", "--format", "graph"])

    assert code == 0
    graph = json.loads(capsys.readouterr().out)
    assert graph["order"][0] == "event_bus"
    assert graph["nodes"]["event_rule"]["properties"]["EventBusName"] == "test-pipeline-bus"


def test_account_resolved_through_sts(load_module, tmp_path, capsys) -> None:
    """
    Given: 계정 ID 없이 실행
    When: moto로 STS를 모킹
    Then: caller identity의 계정으로 ARN 생성
    """
    main = load_module(TARGET)["main"]
    path = _write(tmp_path, build_pipeline_config())

    with mock_aws():
        code = main(["--config", path, "--region", "us-east-1"])

    assert code == 0
    outputs = json.loads(capsys.readouterr().out)
    # moto's default account
    assert outputs["queue_arn"] == "arn:aws:sqs:us-east-1:123456789012:test-pipeline-queue"


def test_environment_preset(load_module, capsys) -> None:
    main = load_module(TARGET)["main"]

    code = main(["--environment", "dev", "--account-id", "111122223333"])

    assert code == 0
    outputs = json.loads(capsys.readouterr().out)
    assert outputs["queue_url"].startswith("https://sqs.ap-northeast-2.amazonaws.com/111122223333/")


def test_missing_file_is_usage_error(load_module, tmp_path, capsys) -> None:
    main = load_module(TARGET)["main"]

    code = main(["--config", str(tmp_path / "absent.json"), "--account-id", "1", "--region", "us-east-1"])

    assert code == 2
    assert "error:" in capsys.readouterr().err


def test_unknown_environment_is_usage_error(load_module, capsys) -> None:
    main = load_module(TARGET)["main"]

    assert main(["--environment", "qa", "--account-id", "1"]) == 2
