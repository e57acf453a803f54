"""Shared fixtures: a small synthetic density-gradient screen on disk."""

from pathlib import Path

import pytest

from rbtnseq_pipeline.config import load_config

# Replicate norm_gene_fitness per gene: (fructose F3, formate F3).
# None is written as NaN (replicate dropout); genes absent from a list have no rows.
F3_FITNESS = {
    "H16_A0001": ([-2.0, -1.0], [-2.0, None]),   # means -1.5, -2.0 -> combined -3.5
    "H16_A0002": ([-4.0, -4.0], [-3.0, -3.0]),   # essential on fructose
    "H16_A0003": ([0.5, 0.5], [0.5, 1.5]),       # combined 1.5
    "H16_A0004": ([1.0, 2.0], [2.0, 2.0]),       # combined 3.5
    "H16_A0005": ([-0.5, -0.5], [0.0, 0.0]),     # combined -0.5
    "H16_A0006": ([-5.0, -5.0], None),           # fructose only -> never ranked
}


def _fitness_lines() -> list[str]:
    lines = ["locusId\tcarbon\tnitrogen\ttime\trep\tnorm_fg\tlog2FC\tt"]
    for locus, (fructose, formate) in F3_FITNESS.items():
        for carbon, values in (("fructose", fructose), ("formate", formate)):
            if values is None:
                continue
            for rep, value in enumerate(values, start=1):
                text = "NaN" if value is None else str(value)
                lines.append(f"{locus}\t{carbon}\tNH4Cl\tF3\t{rep}\t{text}\t{text}\t1.0")
        for carbon in ("fructose", "formate"):
            if locus == "H16_A0006" and carbon == "formate":
                continue
            for rep in (1, 2):
                lines.append(f"{locus}\t{carbon}\tNH4Cl\tF1\t{rep}\t0.1\t0.1\t0.5")
    return lines


def write_screen(data_dir: Path) -> None:
    """Write every upstream input table of a six-gene screen into data_dir."""
    data_dir.mkdir(parents=True, exist_ok=True)

    (data_dir / "pool.tsv").write_text(
        "barcode\trcbarcode\tnTot\tn\tscaffold\tstrand\tpos\tlocusId\n"
        "AAAA\tTTTT\t10\t9\tNC_008313\t+\t100\tH16_A0001\n"
        "CCCC\tGGGG\t8\t8\tNC_008313\t-\t900\tH16_A0001\n"
        "GGGG\tCCCC\t5\t5\tNC_008313\t+\t2100\tH16_A0002\n"
        "TTTT\tAAAA\t7\t7\tNC_008313\t+\t3500\tH16_A0003\n"
        "ACGT\tACGT\t4\t4\tNC_008313\t-\t5000\tNA\n"
    )

    codes_dir = data_dir / "codes"
    codes_dir.mkdir(exist_ok=True)
    (codes_dir / "S1.codes").write_text(
        "barcode\tS1\n"
        "AAAA\t50\n"
        "GGGG\t30\n"
        "ACGT\t10\n"
        "NNNN\t10\n"
    )
    (codes_dir / "S2.codes").write_text(
        "barcode\tS2\n"
        "AAAA\t20\n"
        "TTTT\t20\n"
    )

    (data_dir / "result.poolcount").write_text(
        "barcode\trcbarcode\tscaffold\tstrand\tpos\tlocusId\tf\tS1\tS2\n"
        "AAAA\tTTTT\tNC_008313\t+\t100\tH16_A0001\t0.1\t50\t20\n"
        "CCCC\tGGGG\tNC_008313\t-\t900\tH16_A0001\t0.8\t5\t0\n"
        "GGGG\tCCCC\tNC_008313\t+\t2100\tH16_A0002\t0.3\t30\t0\n"
        "ACGT\tACGT\tNC_008313\t-\t5000\t\t\t10\t0\n"
    )

    (data_dir / "result.colsum").write_text(
        "Index\tnReads\tnUsed\n"
        "S1\t200\t100\n"
        "S2\t0\t0\n"
    )

    (data_dir / "fitness_gene.tsv").write_text("\n".join(_fitness_lines()) + "\n")

    (data_dir / "annotation.csv").write_text(
        "locus_tag,gene,eggNOG_name,COG_Process,Pathway\n"
        "H16_A0001,phaC1,phaC,Lipid metabolism,PHB synthesis\n"
        "H16_A0001,phaC1_dup,phaC,Lipid metabolism,PHB synthesis\n"
        "H16_A0002,gapA,gapA,Carbohydrate metabolism,Glycolysis\n"
        "H16_A0003,,yfiA,Translation,\n"
        "H16_A0004,cbbL,rbcL,Carbon fixation,CBB cycle\n"
    )

    (data_dir / "fitness_8gen.tsv").write_text(
        "locus_tag\tsubstrate\ttime\tnorm_gene_fitness\n"
        "H16_A0002\tfructose\t8gen\t-3.1\n"
        "H16_A0002\tformate\t8gen\t-1.0\n"
        "H16_A0001\tfructose\t8gen\t-2.4\n"
        "H16_A0003\tformate\t8gen\t0.2\n"
        "H16_A0004\tformate\t8gen\t-2.9\n"
        "H16_A0004\tformate\t4gen\t0.0\n"
    )


def config_text(tmp_path: Path, top_n: int = 2) -> str:
    return f"""
data_dir: {tmp_path / "data"}
output_dir: {tmp_path / "results"}
inputs:
  poolfile: pool.tsv
  poolcount: result.poolcount
  colsum: result.colsum
  codes_dir: codes
  fitness: fitness_gene.tsv
  annotation: annotation.csv
  essentiality: fitness_8gen.tsv
thresholds:
  essential_cutoff: -2.5
  essential_timepoint: 8gen
  top_n: {top_n}
comparisons:
  - name: fructose_formate_F3
    condition_a: fructose_NH4Cl
    condition_b: formate_NH4Cl
    fraction: F3
    substrates: [fructose]
"""


@pytest.fixture
def screen_data_dir(tmp_path):
    """Directory holding the synthetic screen input files."""
    data_dir = tmp_path / "data"
    write_screen(data_dir)
    return data_dir


@pytest.fixture
def screen_config_path(screen_data_dir, tmp_path):
    """Config YAML pointing at a freshly written synthetic screen."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(config_text(tmp_path))
    return config_path


@pytest.fixture
def screen_config(screen_config_path):
    """Loaded PipelineConfig for the synthetic screen."""
    return load_config(screen_config_path)
