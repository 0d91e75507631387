"""Tests for KML parser: hierarchy, styles, geometries, lenient coordinates."""

import pytest
from geotree.errors import MalformedDocumentError
from geotree.feature import FeatureKind
from geotree.geometry import BoundingBox, Coordinate, LineString, MultiGeometry, Point
from geotree.parsers.kml import parse_coordinate_string, parse_kml
from geotree.style import Style


STYLE_REF_KML = """\
<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <Placemark>
      <styleUrl>#s1</styleUrl>
      <Point><coordinates>2.3,48.8,0</coordinates></Point>
    </Placemark>
    <Style id="s1">
      <LineStyle><color>ff0000ff</color><width>3</width></LineStyle>
      <PolyStyle><color>7f00ff00</color></PolyStyle>
    </Style>
  </Document>
</kml>
"""

HIERARCHY_KML = """\
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document id="doc">
    <name>Root</name>
    <description>Top level</description>
    <Placemark>
      <name>Before</name>
      <Point><coordinates>0,0</coordinates></Point>
    </Placemark>
    <Folder id="f1">
      <name>Sub</name>
      <visibility>0</visibility>
      <open>0</open>
      <Placemark>
        <name>Route</name>
        <LineString><coordinates>10,20,5 11,21</coordinates></LineString>
      </Placemark>
      <Folder>
        <name>Empty</name>
      </Folder>
    </Folder>
    <Placemark>
      <name>After</name>
      <Point><coordinates>-5,-6</coordinates></Point>
    </Placemark>
  </Document>
</kml>
"""

POLYGON_KML = """\
<kml>
  <Document>
    <Placemark>
      <name>Zone Alpha</name>
      <Polygon>
        <outerBoundaryIs><LinearRing><coordinates>
          0,0,0 10,0,0 10,10,0 0,0,0
        </coordinates></LinearRing></outerBoundaryIs>
        <innerBoundaryIs><LinearRing><coordinates>
          2,2 3,2 3,3 2,2
        </coordinates></LinearRing></innerBoundaryIs>
      </Polygon>
    </Placemark>
  </Document>
</kml>
"""

METADATA_KML = """\
<kml>
  <Document>
    <Placemark id="pm1">
      <name>Tower</name>
      <description><![CDATA[<b>tall</b>]]></description>
      <ExtendedData>
        <Data name="height"><value>120</value></Data>
        <Data name="owner"><value>city</value></Data>
        <Data name="height"><value>125</value></Data>
        <SchemaData schemaUrl="#s"><SimpleData name="kind">radio</SimpleData></SchemaData>
      </ExtendedData>
      <Point><coordinates>1,2,3</coordinates></Point>
    </Placemark>
  </Document>
</kml>
"""


class TestKMLParser:
    """Parse KML XML to a Document."""

    def test_style_url_scenario(self):
        """styleUrl #s1 resolves to style_ref 's1' even though the Style comes later."""
        doc = parse_kml(STYLE_REF_KML)
        assert len(doc.root.children) == 1
        f = doc.root.children[0]
        assert f.kind == FeatureKind.POINT
        assert f.geometry.coordinate == Coordinate(2.3, 48.8, 0.0)
        assert f.style_ref == "s1"
        assert doc.styles.get("s1") == Style(
            line_color="ff0000ff", line_width=3.0, fill_color="7f00ff00"
        )

    def test_hierarchy_preserves_document_order(self):
        doc = parse_kml(HIERARCHY_KML)
        root = doc.root
        assert root.kind == FeatureKind.FOLDER
        assert root.name == "Root"
        assert root.description == "Top level"
        assert root.feature_id == "doc"
        assert [c.name for c in root.children] == ["Before", "Sub", "After"]

        sub = root.children[1]
        assert sub.kind == FeatureKind.FOLDER
        assert sub.feature_id == "f1"
        assert sub.visible is False
        assert sub.open is False
        assert [c.name for c in sub.children] == ["Route", "Empty"]
        assert sub.children[1].children == []
        assert sub.children[1].bounding_box is None

    def test_folder_bounding_boxes(self):
        doc = parse_kml(HIERARCHY_KML)
        sub = doc.root.children[1]
        assert sub.bounding_box == BoundingBox(north=21, east=11, south=20, west=10)
        assert doc.root.bounding_box == BoundingBox(north=21, east=11, south=-6, west=-5)
        assert doc.root.bounding_box == doc.root.compute_bounding_box()

    def test_altitude_defaults_to_zero(self):
        doc = parse_kml(HIERARCHY_KML)
        route = doc.root.children[1].children[0]
        assert route.geometry == LineString([Coordinate(10, 20, 5), Coordinate(11, 21, 0)])

    def test_polygon_outer_and_holes(self):
        doc = parse_kml(POLYGON_KML)
        poly = doc.root.children[0]
        assert poly.kind == FeatureKind.POLYGON
        assert len(poly.geometry.outer) == 4
        assert len(poly.geometry.holes) == 1
        assert poly.geometry.holes[0][0] == Coordinate(2, 2, 0)

    def test_extended_data_and_metadata(self):
        doc = parse_kml(METADATA_KML)
        f = doc.root.children[0]
        assert f.feature_id == "pm1"
        assert f.description == "<b>tall</b>"
        assert f.extended_data == {"height": "125", "owner": "city", "kind": "radio"}

    def test_first_geometry_wins(self):
        kml = """<kml><Document><Placemark>
            <LineString><coordinates>0,0 1,1</coordinates></LineString>
            <Point><coordinates>5,5</coordinates></Point>
        </Placemark></Document></kml>"""
        f = parse_kml(kml).root.children[0]
        assert f.kind == FeatureKind.LINE_STRING

    def test_bad_coordinate_tuple_is_dropped(self):
        kml = """<kml><Document><Placemark>
            <LineString><coordinates>0,0 abc,1 1,1 2 3,3,x 4,4</coordinates></LineString>
        </Placemark></Document></kml>"""
        f = parse_kml(kml).root.children[0]
        assert f.geometry.coordinates == [Coordinate(0, 0), Coordinate(1, 1), Coordinate(4, 4)]

    def test_placemark_without_geometry_is_skipped(self):
        kml = """<kml><Document><name>D</name>
            <Placemark><name>nothing</name></Placemark>
            <Placemark><name>model</name><Model/></Placemark>
            <Placemark><name>ok</name><Point><coordinates>1,1</coordinates></Point></Placemark>
        </Document></kml>"""
        doc = parse_kml(kml)
        assert doc.root.name == "D"
        assert [c.name for c in doc.root.children] == ["ok"]

    def test_point_without_valid_coordinate_is_unknown(self):
        kml = """<kml><Document>
            <Placemark><name>bad</name><Point><coordinates>x,y</coordinates></Point></Placemark>
            <Placemark><name>good</name><Point><coordinates>1,1</coordinates></Point></Placemark>
        </Document></kml>"""
        children = parse_kml(kml).root.children
        assert [c.kind for c in children] == [FeatureKind.UNKNOWN, FeatureKind.POINT]
        assert children[0].name == "bad"
        assert children[0].bounding_box is None

    def test_multigeometry(self):
        kml = """<kml><Document><Placemark><MultiGeometry>
            <Point><coordinates>1,1</coordinates></Point>
            <LineString><coordinates>2,2 3,3</coordinates></LineString>
        </MultiGeometry></Placemark></Document></kml>"""
        f = parse_kml(kml).root.children[0]
        assert f.kind == FeatureKind.MULTI_GEOMETRY
        assert f.geometry == MultiGeometry([
            Point(Coordinate(1, 1)),
            LineString([Coordinate(2, 2), Coordinate(3, 3)]),
        ])

    def test_inline_style_is_shared(self):
        kml = """<kml><Document><Placemark>
            <Style><LineStyle><width>7</width></LineStyle></Style>
            <LineString><coordinates>0,0 1,1</coordinates></LineString>
        </Placemark></Document></kml>"""
        doc = parse_kml(kml)
        f = doc.root.children[0]
        assert f.style_ref is not None
        assert doc.styles.get(f.style_ref) == Style(line_width=7.0)

    def test_dangling_style_url_is_kept(self):
        kml = """<kml><Document><Placemark><styleUrl>#nope</styleUrl>
            <Point><coordinates>0,0</coordinates></Point></Placemark></Document></kml>"""
        doc = parse_kml(kml)
        f = doc.root.children[0]
        assert f.style_ref == "nope"
        assert doc.styles.get("nope") is None

    def test_ground_overlay(self):
        kml = """<kml><Document><GroundOverlay>
            <name>Scan</name>
            <color>7fffffff</color>
            <Icon><href>scan.png</href></Icon>
            <LatLonBox><north>2</north><south>1</south><east>4</east><west>3</west>
            <rotation>15</rotation></LatLonBox>
        </GroundOverlay></Document></kml>"""
        f = parse_kml(kml).root.children[0]
        assert f.kind == FeatureKind.GROUND_OVERLAY
        assert f.ground_overlay.icon_href == "scan.png"
        assert f.ground_overlay.color == "7fffffff"
        assert f.ground_overlay.rotation == 15.0
        assert f.bounding_box == BoundingBox(north=2, east=4, south=1, west=3)

    def test_bare_document_root(self):
        kml = "<Document><name>Bare</name><Placemark><Point><coordinates>1,2</coordinates></Point></Placemark></Document>"
        doc = parse_kml(kml)
        assert doc.root.name == "Bare"
        assert len(doc.root.children) == 1

    def test_kml_root_with_direct_placemarks(self):
        kml = "<kml><Placemark><name>p</name><Point><coordinates>1,2</coordinates></Point></Placemark></kml>"
        doc = parse_kml(kml)
        assert doc.root.name is None
        assert [c.name for c in doc.root.children] == ["p"]

    def test_unrecognized_elements_ignored(self):
        kml = """<kml><Document><LookAt><longitude>1</longitude></LookAt>
            <NetworkLink><name>n</name></NetworkLink>
            <Placemark><Point><coordinates>1,2</coordinates></Point></Placemark>
        </Document></kml>"""
        assert len(parse_kml(kml).root.children) == 1

    def test_malformed_xml_raises(self):
        with pytest.raises(MalformedDocumentError):
            parse_kml("<kml><Document>")

    def test_accepts_bytes(self):
        doc = parse_kml(STYLE_REF_KML.encode("utf-8"))
        assert doc.root.children[0].style_ref == "s1"


class TestCoordinateString:
    """KML coordinate text parsing."""

    def test_multiline_whitespace(self):
        coords = parse_coordinate_string("\n  1,2,3\n\t4,5  \n")
        assert coords == [Coordinate(1, 2, 3), Coordinate(4, 5, 0)]

    def test_empty(self):
        assert parse_coordinate_string("   ") == []

    def test_text_kept_verbatim(self):
        kml = """<kml><Document><Placemark>
            <name> Tower 1 </name>
            <description>
line one
</description>
            <ExtendedData><Data name="k"><value> v </value></Data></ExtendedData>
            <Point><coordinates>1,2</coordinates></Point>
        </Placemark></Document></kml>"""
        f = parse_kml(kml).root.children[0]
        assert f.name == " Tower 1 "
        assert f.description == "\nline one\n"
        assert f.extended_data == {"k": " v "}

    def test_open_ignored_on_placemarks(self):
        kml = """<kml><Document><Placemark><open>0</open>
            <Point><coordinates>1,2</coordinates></Point>
        </Placemark></Document></kml>"""
        assert parse_kml(kml).root.children[0].open is True
